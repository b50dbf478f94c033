"""Runner to reduce every archived log bundle to its latest day's log."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

import arrow
from dependency_injector.wiring import Provide, inject

from logtrim.logging import logger
from logtrim.setup.dependency_injection import LogtrimContainer, init_dependencies_from_env
from logtrim.transform.progress import display_duration

if TYPE_CHECKING:
    from logtrim.transform.batch_transformer import BatchTransformer


@inject
def _main(
    batch_transformer: BatchTransformer = Provide[LogtrimContainer.batch_transformer],
) -> int:
    started_at = arrow.utcnow()

    summary = batch_transformer.transform_all()

    logger.info(f"Finished in {display_duration(arrow.utcnow() - started_at)}.")
    return 0 if summary.successful else 1


if __name__ == "__main__":
    container = init_dependencies_from_env()
    container.wire(modules=[__name__])
    sys.exit(_main())
