"""
FitFeatureConverter: batch FIT → CSV conversion.

Flow for a directory:
  1. List *.fit files (case-insensitive, not recursive)
  2. For each file: decode → validate → build samples → engineer features
  3. Concatenate rows from every activity and write one CSV

A file that fails to decode is logged and skipped; the batch carries on.
Nothing is written when no rows were produced.
"""
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from trackforge.config import ProcessingConfig
from trackforge.features.csv_writer import write_csv
from trackforge.features.engineer import engineer_features
from trackforge.features.samples import ActivitySample
from trackforge.fit.fit_parser import FitParseError, decode_fit_file
from trackforge.fit.records import DecodedActivity

logger = logging.getLogger(__name__)


def activity_id_from_path(path: Path) -> str:
    """File stem with every non-alphanumeric character replaced by '_'."""
    return re.sub(r"[^a-zA-Z0-9]", "_", path.stem)


class FitFeatureConverter:
    """Converts FIT files into flat feature rows."""

    def __init__(self, config: Optional[ProcessingConfig] = None):
        self.config = config or ProcessingConfig()

    def process_fit_file(self, path: Path) -> List[ActivitySample]:
        """
        Decode one FIT file and return its engineered samples.

        Raises:
            FitParseError: if the file can't be decoded or its messages
                don't match the expected schema.
        """
        messages = decode_fit_file(path)
        try:
            activity = DecodedActivity.from_messages(activity_id_from_path(path), messages)
        except ValidationError as exc:
            raise FitParseError(str(path), f"unexpected message contents: {exc}") from exc

        if not activity.records:
            logger.warning("No record messages in %s", path.name)
            return []

        return engineer_features(activity, self.config)

    def convert_files(self, paths: List[Path]) -> List[Dict[str, Any]]:
        """Process every file, skipping (and logging) the ones that fail."""
        rows: List[Dict[str, Any]] = []
        for path in paths:
            logger.info("Processing %s", path.name)
            try:
                samples = self.process_fit_file(path)
            except FitParseError as exc:
                logger.error("Skipping %s: %s", exc.source, exc)
                continue

            if samples:
                rows.extend(s.to_row() for s in samples)
                logger.info("Added %d data points from %s", len(samples), path.name)
            else:
                logger.warning("No valid data points in %s", path.name)
        return rows

    def convert_directory(self, fit_directory: Path, output_csv: Path) -> int:
        """
        Convert every .fit file in a directory into one CSV.

        Returns:
            Number of data rows written (0 means nothing was written).
        """
        fit_files = sorted(
            p for p in fit_directory.iterdir()
            if p.is_file() and p.suffix.lower() == ".fit"
        )
        if not fit_files:
            logger.warning("No FIT files found in %s", fit_directory)
            return 0

        logger.info("Found %d FIT files", len(fit_files))
        rows = self.convert_files(fit_files)

        if not rows:
            logger.error("No training data generated")
            return 0

        write_csv(rows, output_csv)
        logger.info("Conversion complete: %d data points saved to %s", len(rows), output_csv)
        return len(rows)
