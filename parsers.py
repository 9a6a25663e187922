"""
Sample data parser.
Reads scattered elevation samples from CSV, DAT and TXT files.
"""

import logging
from pathlib import Path
from typing import List, Tuple

import pandas as pd

from models import Sample

logger = logging.getLogger(__name__)


class SampleFileParser:
    """Parse x/y/elevation samples from delimited text files."""

    COLUMN_ALIASES = {
        'x': 'x', 'lon': 'x', 'lng': 'x', 'longitude': 'x', 'easting': 'x', 'east': 'x',
        'y': 'y', 'lat': 'y', 'latitude': 'y', 'northing': 'y', 'north': 'y',
        'z': 'elevation', 'elev': 'elevation', 'elevation': 'elevation', 'height': 'elevation',
    }

    def __init__(self):
        self.supported_formats = ['.csv', '.dat', '.txt']

    def parse_file(self, file_path) -> pd.DataFrame:
        """
        Auto-detect format and parse a sample file.

        Returns:
            DataFrame with columns: x, y, elevation (NaN where missing)

        Raises:
            ValueError: If no usable coordinates are found.
        """
        file_path = Path(file_path)
        extension = file_path.suffix.lower()

        if extension in ('.dat', '.txt'):
            df = self._parse_whitespace(file_path)
        else:
            df = self._parse_csv(file_path)

        return self._clean(df, file_path)

    def _parse_csv(self, file_path: Path) -> pd.DataFrame:
        df = pd.read_csv(file_path, skipinitialspace=True)
        df.columns = df.columns.str.strip().str.lower().str.replace(' ', '_')

        col_mapping = {}
        for col in df.columns:
            target = self.COLUMN_ALIASES.get(col)
            if target and target not in col_mapping.values():
                col_mapping[col] = target
        df = df.rename(columns=col_mapping)

        if not {'x', 'y'} <= set(df.columns):
            # Headerless or unknown headers: use the first three columns positionally
            df = pd.read_csv(file_path, header=None, skipinitialspace=True)
            df = self._positional(df, file_path)
        if 'elevation' not in df.columns:
            df['elevation'] = float('nan')
        return df[['x', 'y', 'elevation']]

    def _parse_whitespace(self, file_path: Path) -> pd.DataFrame:
        df = pd.read_csv(file_path, sep=r'\s+', header=None, comment='#', engine='python')
        return self._positional(df, file_path)

    def _positional(self, df: pd.DataFrame, file_path: Path) -> pd.DataFrame:
        if df.shape[1] < 2:
            raise ValueError(f"Expected at least x and y columns in {file_path.name}")
        df = df.iloc[:, :3].copy()
        df.columns = ['x', 'y', 'elevation'][:df.shape[1]]
        # Drop a header row that did not parse as numbers
        numeric_x = pd.to_numeric(df['x'], errors='coerce')
        if len(df) and pd.isna(numeric_x.iloc[0]):
            df = df.iloc[1:]
        if 'elevation' not in df.columns:
            df['elevation'] = float('nan')
        return df

    def _clean(self, df: pd.DataFrame, file_path: Path) -> pd.DataFrame:
        df = df.copy()
        for col in ('x', 'y', 'elevation'):
            df[col] = pd.to_numeric(df[col], errors='coerce')

        before = len(df)
        df = df[df['x'].notna() & df['y'].notna()]
        if len(df) < before:
            logger.warning(f"Dropped {before - len(df)} rows without coordinates from {file_path.name}")

        if len(df) == 0:
            raise ValueError(f"No valid sample points found in {file_path.name}")

        return df.reset_index(drop=True)

    @staticmethod
    def to_samples(df: pd.DataFrame) -> List[Sample]:
        samples = []
        for x, y, z in df[['x', 'y', 'elevation']].itertuples(index=False):
            samples.append(Sample(float(x), float(y), None if pd.isna(z) else float(z)))
        return samples

    @staticmethod
    def validate_data(df: pd.DataFrame) -> Tuple[bool, List[str]]:
        """
        Validate parsed samples.

        Returns:
            (is_valid, list of issues)
        """
        issues = []
        if len(df) < 3:
            issues.append(f"Only {len(df)} points; at least 3 are needed for contouring")
        missing = int(df['elevation'].isna().sum())
        if missing:
            issues.append(f"{missing} points have no elevation and will be ignored")
        duplicates = int(df.duplicated(subset=['x', 'y']).sum())
        if duplicates:
            issues.append(f"{duplicates} duplicate coordinates found")
        blocking = len(df) - missing - duplicates < 3 or duplicates > 0
        return not blocking, issues
