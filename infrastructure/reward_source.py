# ============================================================================
# REWARD SOURCE
# ============================================================================
# STATUS: Infrastructure - raw reward event loading
# PURPOSE: Read raw reward payloads from JSON array, JSON Lines or Parquet files
# EXPORTS: RewardSourceRepository, RewardSourceLoad
# DEPENDENCIES: pandas (Parquet sources)
# ============================================================================
"""
Raw reward event loading.

Formats (chosen by content / suffix):
    - JSON array:  ``[{...}, {...}]``
    - JSON Lines:  one object per line; blank lines ignored
    - Parquet:     one row per event (``.parquet`` suffix)

A corrupt JSON Lines entry is skipped and counted, never fatal: upstream
dumps are appended to by long-running fetchers and the last line is often
partial. A corrupt JSON array is fatal because nothing in it can be trusted.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

import pandas as pd

from exceptions import PipelineError, ResourceNotFoundError
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "RewardSourceRepository")


@dataclass
class RewardSourceLoad:
    """Records read from one source file."""

    path: str
    records: List[Dict[str, Any]] = field(default_factory=list)
    corrupt_lines: int = 0
    format: str = "jsonl"


class RewardSourceRepository:
    """Reads raw reward payloads from the local filesystem."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> RewardSourceLoad:
        """
        Read every record in the source.

        Returns:
            RewardSourceLoad with the records and the corrupt-line count

        Raises:
            ResourceNotFoundError: Source file does not exist
            PipelineError: Source is a malformed JSON array or unreadable Parquet
        """
        if not self.path.exists():
            raise ResourceNotFoundError(f"Reward source not found: {self.path}")

        if self.path.suffix.lower() == ".parquet":
            result = self._load_parquet()
        else:
            text = self.path.read_text(encoding="utf-8")
            if text.lstrip().startswith("["):
                result = self._load_json_array(text)
            else:
                result = self._load_json_lines(text)

        logger.info(
            f"✅ Loaded {len(result.records)} reward records from {self.path} ({result.format})",
            extra={'custom_dimensions': {
                'path': str(self.path),
                'records': len(result.records),
                'corrupt_lines': result.corrupt_lines,
                'format': result.format,
            }}
        )
        return result

    def _load_json_array(self, text: str) -> RewardSourceLoad:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise PipelineError(f"Reward source {self.path} is not valid JSON: {e}") from e

        records = [item for item in data if isinstance(item, dict)]
        skipped = len(data) - len(records)
        if skipped:
            logger.warning(f"⚠️ Skipped {skipped} non-object entries in {self.path}")
        return RewardSourceLoad(str(self.path), records, skipped, "json")

    def _load_json_lines(self, text: str) -> RewardSourceLoad:
        records: List[Dict[str, Any]] = []
        corrupt = 0
        for line_no, line in enumerate(text.splitlines(), start=1):
            line = line.strip()
            if not line:
                continue
            try:
                item = json.loads(line)
            except json.JSONDecodeError:
                corrupt += 1
                if corrupt <= 5:
                    logger.warning(f"⚠️ Corrupt JSON line {line_no} in {self.path}")
                continue
            if not isinstance(item, dict):
                corrupt += 1
                continue
            records.append(item)

        if corrupt > 5:
            logger.warning(f"⚠️ {corrupt} corrupt lines in {self.path} (first 5 logged)")
        return RewardSourceLoad(str(self.path), records, corrupt, "jsonl")

    def _load_parquet(self) -> RewardSourceLoad:
        try:
            df = pd.read_parquet(self.path)
        except Exception as e:
            raise PipelineError(f"Reward source {self.path} could not be read as Parquet: {e}") from e

        # Nulls become None so the normalizer treats them as absent
        df = df.astype(object).where(pd.notna(df), None)
        return RewardSourceLoad(str(self.path), df.to_dict("records"), 0, "parquet")
