"""
MatchLens Web API

Endpoints:
- GET  /health: liveness check
- GET  /maps: maps with a coordinate calibration
- POST /parse: run one match: stats posted, heatmaps uploaded

A parse request runs synchronously and reports the single terminal outcome
of the run: success, or the error that aborted it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from fastapi import Depends, FastAPI, HTTPException

from matchlens import __version__
from matchlens.errors import (
    AcquisitionError,
    ConfigurationError,
    DecodeError,
    DeliveryError,
    MalformedEventError,
    MatchLensError,
)
from matchlens.map_data import available_maps
from matchlens.pipeline import MatchRunner, RunRequest
from matchlens.schemas import ParseRequest

logger = logging.getLogger(__name__)

app = FastAPI(
    title="MatchLens API",
    description="CS2 match statistics and kill/death heatmaps from recorded demos",
    version=__version__,
)


def get_runner() -> Iterator[MatchRunner]:
    """A fresh runner per request, closed once the response is sent."""
    runner = MatchRunner()
    try:
        yield runner
    finally:
        runner.close()


def _status_for(error: MatchLensError) -> int:
    if isinstance(error, (AcquisitionError, DeliveryError)):
        return 502
    if isinstance(error, (DecodeError, MalformedEventError)):
        return 422
    if isinstance(error, ConfigurationError):
        return 400
    return 500


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


@app.get("/maps")
async def maps():
    return {"maps": available_maps()}


@app.post("/parse")
def parse(body: ParseRequest, runner: MatchRunner = Depends(get_runner)) -> dict[str, Any]:
    """Run the full pipeline for one match and one tracked player."""
    logger.info(f"Parse request: match={body.match_id} player={body.nickname} url={body.demo_url}")

    try:
        outcome = runner.run(
            RunRequest(demo_url=body.demo_url, nickname=body.nickname, match_id=body.match_id)
        )
    except MatchLensError as e:
        status = _status_for(e)
        logger.warning(f"Parse request for match {body.match_id} failed with {status}")
        raise HTTPException(
            status_code=status,
            detail=f"{type(e).__name__}: {e}",
        ) from e

    return {
        "status": "ok",
        "matchId": outcome.match_id,
        "map": outcome.map_name,
        "players": len(outcome.result.players),
        "heatmaps": outcome.heatmaps,
        "elapsedMs": outcome.elapsed_ms,
    }
