"""Unit tests for reading sample files."""

import pytest

from parsers import SampleFileParser


@pytest.fixture
def parser() -> SampleFileParser:
    return SampleFileParser()


class TestParseFile:
    """Tests for SampleFileParser.parse_file."""

    def test_csv_with_aliased_headers(self, parser: SampleFileParser, tmp_path) -> None:
        path = tmp_path / 'points.csv'
        path.write_text("Longitude, Latitude, Elev\n-74.0, 40.7, 10\n-73.9, 40.8, 25.5\n")

        df = parser.parse_file(path)

        assert list(df.columns) == ['x', 'y', 'elevation']
        assert df['x'].tolist() == [-74.0, -73.9]
        assert df['elevation'].tolist() == [10.0, 25.5]

    def test_headerless_csv(self, parser: SampleFileParser, tmp_path) -> None:
        path = tmp_path / 'points.csv'
        path.write_text("0,0,1\n1,0,2\n0,1,3\n")

        df = parser.parse_file(path)

        assert len(df) == 3
        assert df['elevation'].tolist() == [1.0, 2.0, 3.0]

    def test_csv_without_elevation(self, parser: SampleFileParser, tmp_path) -> None:
        path = tmp_path / 'points.csv'
        path.write_text("x,y\n0,0\n1,1\n")

        df = parser.parse_file(path)

        assert df['elevation'].isna().all()

    def test_whitespace_dat_with_comments(self, parser: SampleFileParser, tmp_path) -> None:
        path = tmp_path / 'survey.dat'
        path.write_text("# x y z\n0.0  0.0  10.0\n5.0\t0.0  20.0\n0.0  5.0  30.0\n")

        df = parser.parse_file(path)

        assert len(df) == 3
        assert df.iloc[1].tolist() == [5.0, 0.0, 20.0]

    def test_rows_without_coordinates_are_dropped(self, parser: SampleFileParser, tmp_path) -> None:
        path = tmp_path / 'points.csv'
        path.write_text("x,y,z\n0,0,1\nabc,0,2\n1,1,3\n")

        df = parser.parse_file(path)

        assert df['x'].tolist() == [0.0, 1.0]

    def test_no_usable_rows(self, parser: SampleFileParser, tmp_path) -> None:
        path = tmp_path / 'points.csv'
        path.write_text("x,y,z\nfoo,bar,1\n")

        with pytest.raises(ValueError, match="No valid sample points"):
            parser.parse_file(path)


class TestToSamples:
    """Tests for converting rows to samples."""

    def test_missing_elevation_becomes_pending(self, parser: SampleFileParser, tmp_path) -> None:
        path = tmp_path / 'points.csv'
        path.write_text("x,y,z\n0,0,1\n1,0,\n0,1,3\n")

        samples = parser.to_samples(parser.parse_file(path))

        assert [s.as_tuple() for s in samples] == [(0.0, 0.0), (1.0, 0.0), (0.0, 1.0)]
        assert [s.has_elevation for s in samples] == [True, False, True]
        assert samples[2].elevation == 3.0


class TestValidateData:
    """Tests for SampleFileParser.validate_data."""

    def _frame(self, parser: SampleFileParser, tmp_path, text: str):
        path = tmp_path / 'points.csv'
        path.write_text(text)
        return parser.parse_file(path)

    def test_clean_data(self, parser: SampleFileParser, tmp_path) -> None:
        df = self._frame(parser, tmp_path, "x,y,z\n0,0,1\n1,0,2\n0,1,3\n")
        assert SampleFileParser.validate_data(df) == (True, [])

    def test_duplicates_block(self, parser: SampleFileParser, tmp_path) -> None:
        df = self._frame(parser, tmp_path, "x,y,z\n0,0,1\n1,0,2\n0,1,3\n0,1,4\n")
        ok, issues = SampleFileParser.validate_data(df)
        assert not ok
        assert any('duplicate' in issue for issue in issues)

    def test_missing_elevations_are_reported(self, parser: SampleFileParser, tmp_path) -> None:
        df = self._frame(parser, tmp_path, "x,y,z\n0,0,1\n1,0,2\n0,1,3\n1,1,\n")
        ok, issues = SampleFileParser.validate_data(df)
        assert ok
        assert issues == ["1 points have no elevation and will be ignored"]

    def test_too_few_points(self, parser: SampleFileParser, tmp_path) -> None:
        df = self._frame(parser, tmp_path, "x,y,z\n0,0,1\n1,0,2\n")
        ok, issues = SampleFileParser.validate_data(df)
        assert not ok
        assert any('at least 3' in issue for issue in issues)
