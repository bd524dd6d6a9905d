"""
Match run orchestration.

One run processes one match, strictly in sequence:

    acquire demo -> decode events -> resolve map calibration
        -> aggregate statistics -> collect tracked player's points
        -> render heatmaps -> upload images -> post stats -> clean up

Every stage either succeeds or raises; nothing is delivered unless all
computation succeeded, so a failed run produces no output.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

import httpx
from PIL import Image

from matchlens.acquisition import acquire_demo
from matchlens.aggregator import StatAggregator
from matchlens.config import AggregationConfig, HeatmapConfig, MatchLensConfig, get_config
from matchlens.constants import HEATMAP_KINDS
from matchlens.delivery import LocalObjectStore, ObjectStore, S3ObjectStore, post_stats
from matchlens.errors import DeliveryError, HeatmapError, MatchLensError
from matchlens.events import Event
from matchlens.map_data import MapCalibration, get_calibration
from matchlens.models import MatchAggregateResult
from matchlens.parser import DecodedDemo, decode_demo
from matchlens.spatial import SpatialPointCollector
from matchlens.utils import OperationTimer
from matchlens.visualization.heatmaps import (
    encode_jpeg,
    heatmap_filename,
    load_map_image,
    render,
)

logger = logging.getLogger(__name__)


@dataclass
class RunRequest:
    demo_url: str
    nickname: str
    match_id: str


@dataclass
class RunOutcome:
    """Result of a completed run."""

    match_id: str
    map_name: str
    result: MatchAggregateResult
    heatmaps: dict[str, str] = field(default_factory=dict)  # filename -> location
    elapsed_ms: int = 0


def aggregate_match(
    match_id: str,
    events: Iterable[Event],
    calibration: MapCalibration,
    config: AggregationConfig | None = None,
) -> MatchAggregateResult:
    """Run the event stream through a fresh StatAggregator."""
    aggregator = StatAggregator(match_id, calibration=calibration, config=config)
    aggregator.apply_all(events)
    return aggregator.finalize()


def collect_points(
    nickname: str, events: Iterable[Event], calibration: MapCalibration
) -> SpatialPointCollector:
    collector = SpatialPointCollector(nickname, calibration)
    collector.apply_all(events)
    logger.info(
        f"{nickname}: {len(collector.kill_points())} kill points, "
        f"{len(collector.death_points())} death points"
    )
    return collector


def render_player_heatmaps(
    match_id: str,
    nickname: str,
    collector: SpatialPointCollector,
    base_image: Image.Image,
    config: HeatmapConfig | None = None,
) -> dict[str, bytes]:
    """Render deaths and kills heatmaps; returns JPEG bytes keyed by filename."""
    config = config or HeatmapConfig()
    images: dict[str, bytes] = {}

    for kind in HEATMAP_KINDS:
        points = collector.series(kind)
        try:
            image = render(
                points,
                base_image,
                dot_size=config.dot_size,
                opacity=config.opacity,
                colormap=config.colormap,
            )
        except HeatmapError as e:
            if not config.skip_sparse_series:
                raise
            logger.warning(f"Skipping {kind} heatmap for {nickname}: {e}")
            continue
        images[heatmap_filename(match_id, nickname, kind)] = encode_jpeg(image, config.jpeg_quality)

    return images


def log_player_summary(result: MatchAggregateResult, nickname: str) -> None:
    player = result.get_player(nickname)
    if player is None:
        logger.warning(f"{nickname} not found in roster of match {result.match_id}")
        return
    logger.info(
        f"{player.nickname}: {player.kill_count} kills | {player.assists} assists | "
        f"{player.death_count} deaths | {player.headshots} HS | "
        f"{player.defusals} defusals | {player.bomb_plants} bomb plants"
    )
    logger.info(f"{player.nickname} weapons: {player.weapon_counts()}")


class MatchRunner:
    """
    Runs one match end to end. Collaborators are injectable for testing.

    The runner owns the HTTP client it creates and closes it in close().

    Usage:
        with MatchRunner(config) as runner:
            outcome = runner.run(RunRequest(demo_url, "player", "match-1"))
    """

    def __init__(
        self,
        config: MatchLensConfig | None = None,
        *,
        store: ObjectStore | None = None,
        http_client: httpx.Client | None = None,
        acquire: Callable[..., Path] = acquire_demo,
        decode: Callable[[Path], DecodedDemo] = decode_demo,
    ):
        self.config = config or get_config()
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.Client(
            timeout=self.config.service.http_timeout_seconds,
            follow_redirects=True,
        )
        self.acquire = acquire
        self.decode = decode
        self.store = store or self._default_store()

    def __enter__(self) -> MatchRunner:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self.http_client.close()

    def _default_store(self) -> ObjectStore:
        service = self.config.service
        if service.storage_endpoint and service.storage_bucket:
            return S3ObjectStore(
                service.storage_endpoint,
                service.storage_bucket,
                access_key=service.storage_access_key,
                secret_key=service.storage_secret_key,
                secure=service.storage_secure,
            )
        return LocalObjectStore(self.config.heatmap.output_dir)

    def process_demo(
        self, demo_path: Path, match_id: str, nickname: str
    ) -> tuple[DecodedDemo, MatchAggregateResult, dict[str, bytes]]:
        """Decode a local demo and compute statistics and heatmaps (no delivery)."""
        demo = self.decode(demo_path)
        calibration = get_calibration(demo.map_name)

        result = aggregate_match(match_id, demo.events, calibration, self.config.aggregation)
        log_player_summary(result, nickname)

        collector = collect_points(nickname, demo.events, calibration)
        base_image = load_map_image(self.config.heatmap.maps_dir, calibration.map_name)
        images = render_player_heatmaps(
            match_id, nickname, collector, base_image, self.config.heatmap
        )
        return demo, result, images

    def deliver(self, result: MatchAggregateResult, images: dict[str, bytes]) -> dict[str, str]:
        """Upload images, then post stats, so posted stats always have their images."""
        locations = {name: self.store.put(name, data) for name, data in images.items()}

        endpoint = self.config.service.stats_endpoint
        if not endpoint:
            logger.warning("No stats endpoint configured, stats not posted")
            return locations

        try:
            post_stats(
                result,
                endpoint,
                client=self.http_client,
                timeout=self.config.service.http_timeout_seconds,
            )
        except DeliveryError:
            logger.error(
                f"Stats for match {result.match_id} not posted; "
                f"already uploaded: {sorted(locations)}"
            )
            raise
        return locations

    def run(self, request: RunRequest) -> RunOutcome:
        logger.info(f"Starting run for match {request.match_id} ({request.nickname})")

        try:
            with OperationTimer(f"Match {request.match_id}") as timer:
                demo_path = self.acquire(
                    request.demo_url,
                    request.match_id,
                    work_dir=self.config.service.work_dir,
                    client=self.http_client,
                    timeout=self.config.service.http_timeout_seconds,
                )
                try:
                    demo, result, images = self.process_demo(
                        demo_path, request.match_id, request.nickname
                    )
                    locations = self.deliver(result, images)
                finally:
                    Path(demo_path).unlink(missing_ok=True)
        except MatchLensError:
            logger.exception(f"Run failed for match {request.match_id}")
            raise

        return RunOutcome(
            match_id=request.match_id,
            map_name=demo.map_name,
            result=result,
            heatmaps=locations,
            elapsed_ms=timer.elapsed_ms,
        )
