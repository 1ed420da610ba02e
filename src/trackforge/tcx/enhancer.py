"""
TcxEnhancer: rebuild a sparse TCX export as a complete Garmin-style file.

Flow for one document:
  1. Parse + validate (exactly one Activity with an Id)
  2. Allocate the target distance across laps by HR activity level
  3. Synthesize each lap's track with a single MotionSimulator, so the
     trajectory is continuous from lap to lap
  4. Aggregate lap statistics and serialize

Each call to enhance()/convert() builds its own simulator; nothing carries
over between activities.
"""
import logging
import random
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

from trackforge.config import DEFAULT_TOTAL_DISTANCE_M, ArenaConfig, SpeedDistanceConfig
from trackforge.synthesis.laps import allocate_lap_distances, build_lap
from trackforge.synthesis.motion import MotionSimulator
from trackforge.synthesis.track import fill_missing_fields, synthesize_track
from trackforge.tcx.reader import TcxParseError, read_tcx, read_tcx_file
from trackforge.tcx.schema import Activity, Lap, SourceActivity, SourceTcxDocument, TcxDocument
from trackforge.tcx.writer import to_tcx_string

logger = logging.getLogger(__name__)


def activity_start_time(activity: SourceActivity) -> datetime:
    """
    Best available start time: first lap start, then first trackpoint time,
    then the Id if it is a timestamp, then now (UTC).
    """
    for lap in activity.laps:
        if lap.start_time is not None:
            return lap.start_time
        for point in lap.trackpoints:
            if point.time is not None:
                return point.time
    try:
        return datetime.fromisoformat(activity.id.replace("Z", "+00:00"))
    except ValueError:
        return datetime.now(timezone.utc)


class TcxEnhancer:
    """Turns a validated TCX source document into a fully populated one."""

    def __init__(
        self,
        speed_config: Optional[SpeedDistanceConfig] = None,
        arena: Optional[ArenaConfig] = None,
        total_distance: float = DEFAULT_TOTAL_DISTANCE_M,
        rng: Optional[random.Random] = None,
        synthesize_speed: bool = True,
    ):
        """
        Args:
            speed_config: HR → speed model parameters
            arena: playing area for simulated positions
            total_distance: meters to spread across the activity's laps
            rng: random source; pass random.Random(seed) for reproducible output
            synthesize_speed: False switches to fill-only mode (keep source
                values, fill gaps, no HR speed model or distance rescale)
        """
        self.speed_config = speed_config or SpeedDistanceConfig()
        self.arena = arena or ArenaConfig()
        self.total_distance = total_distance
        self.rng = rng or random.Random()
        self.synthesize_speed = synthesize_speed

    def enhance(self, document: SourceTcxDocument) -> TcxDocument:
        source = document.activity
        if not source.laps:
            logger.warning("Activity %s has no laps", source.id)
            return TcxDocument(activity=Activity(id=source.id, sport=source.sport))

        simulator = MotionSimulator(self.arena, rng=self.rng)
        allocations = allocate_lap_distances(source.laps, self.total_distance)
        lap_start = activity_start_time(source)

        laps: List[Lap] = []
        for source_lap, allocation in zip(source.laps, allocations):
            start = source_lap.start_time or lap_start

            if self.synthesize_speed:
                track = synthesize_track(
                    source_lap.trackpoints, allocation, simulator,
                    self.speed_config, start, self.rng,
                )
                target_distance = allocation
            else:
                track = fill_missing_fields(
                    source_lap.trackpoints, simulator,
                    self.speed_config.max_hr, start, self.rng,
                )
                target_distance = source_lap.distance_meters or track.total_distance

            lap = build_lap(source_lap, track, target_distance, start)
            laps.append(lap)

            if lap.trackpoints:
                lap_start = lap.trackpoints[-1].time + timedelta(seconds=1)
            else:
                lap_start = lap.start_time + timedelta(seconds=lap.total_time_seconds)

        logger.info(
            "Enhanced activity %s: %d laps, %d trackpoints",
            source.id, len(laps), sum(len(lap.trackpoints) for lap in laps),
        )
        return TcxDocument(activity=Activity(id=source.id, sport=source.sport, laps=laps))

    def convert(self, tcx_text, source: str = "<string>") -> str:
        """
        TCX text in, enhanced TCX text out.

        Raises:
            TcxParseError: malformed XML
            TcxValidationError: not exactly one Activity, or missing Id
        """
        return to_tcx_string(self.enhance(read_tcx(tcx_text, source)))

    def convert_file(self, input_path: Path, output_path: Path) -> None:
        document = self.enhance(read_tcx_file(input_path))
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(to_tcx_string(document), encoding="utf-8")

    def convert_directory(self, input_dir: Path, output_dir: Path) -> int:
        """
        Enhance every .tcx file in input_dir into output_dir (same file name).

        Files that fail to parse or validate are logged and skipped.

        Returns:
            Number of files written.
        """
        tcx_files = sorted(
            p for p in input_dir.iterdir()
            if p.is_file() and p.suffix.lower() == ".tcx"
        )
        if not tcx_files:
            logger.warning("No TCX files found in %s", input_dir)
            return 0

        written = 0
        for path in tcx_files:
            logger.info("Enhancing %s", path.name)
            try:
                self.convert_file(path, output_dir / path.name)
            except TcxParseError as exc:
                logger.error("Skipping %s: %s", exc.source, exc)
                continue
            written += 1

        logger.info("Enhanced %d of %d TCX files into %s", written, len(tcx_files), output_dir)
        return written
