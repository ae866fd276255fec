"""Background route-simulation runner.

Resumes the persisted simulation and logs every position change until
interrupted. The worker reads the store only at startup and never writes
to it, so CLI edits (stop, speed, waypoints, fixed point) are neither
reverted nor seen by a running worker; restart it to pick them up.

Run with:  python -m location_sim.worker
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

from location_sim.core.models import Coordinate

log = logging.getLogger(__name__)


def _log_position(position: Optional[Coordinate]) -> None:
    if position is None:
        log.info("No simulated position")
    else:
        log.info("Simulated position %s", position)


def _wait_forever() -> None:
    threading.Event().wait()


def main() -> None:
    from location_sim.config import settings
    from location_sim.core.engine import RouteSimulationEngine
    from location_sim.store.repository import build_repository

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s [worker] %(levelname)s %(message)s",
    )
    log.info(
        "Worker starting (store=%s, interval=%.2fs)",
        settings.store_backend, settings.tick_interval_s,
    )

    repository = build_repository(settings)
    engine = RouteSimulationEngine(repository, tick_interval_s=settings.tick_interval_s)
    engine.subscribe(_log_position)

    state = engine.resume()
    log.info("Engine %s", state.value)

    try:
        _wait_forever()
    except KeyboardInterrupt:
        log.info("Interrupted, stopping")
    finally:
        engine.close()
        repository.store.close()


if __name__ == "__main__":
    main()
