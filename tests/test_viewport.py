"""Tests for the mapstatic.viewport module."""

import dataclasses

import mercantile
import pytest

from mapstatic.conversion import lat_to_y, lng_to_x, x_to_lng, y_to_lat
from mapstatic.errors import InvalidInput, UnsupportedZoom
from mapstatic.grid import plan
from mapstatic.viewport import (BboxSpec, CenterSpec, ResolvedViewport, check_zoom,
                                parse_bbox, pixels, resolve, window)


class TestParseBbox:
    """Tests for the parse_bbox function."""

    def test_parses_string(self):
        """A comma separated string gives left, bottom, right, top."""
        bbox = parse_bbox("-0.2,51.4,0.1,51.6")
        assert bbox == mercantile.LngLatBbox(-0.2, 51.4, 0.1, 51.6)
        assert (bbox.west, bbox.south, bbox.east, bbox.north) == (-0.2, 51.4, 0.1, 51.6)

    def test_tolerates_spaces(self):
        """Whitespace around numbers is ignored."""
        assert parse_bbox(" 1, 2 ,3,4 ") == (1.0, 2.0, 3.0, 4.0)

    def test_accepts_sequence(self):
        """A sequence of four numbers is accepted as well."""
        assert parse_bbox([1, 2, 3, 4]) == (1.0, 2.0, 3.0, 4.0)

    @pytest.mark.parametrize("value", ["1,2,3", "1,2,3,4,5", "a,b,c,d", "", "1,2,,4", "nan,1,2,3"])
    def test_rejects_malformed(self, value):
        """Anything but four finite numbers is invalid input."""
        with pytest.raises(InvalidInput):
            parse_bbox(value)

    def test_invalid_input_is_value_error(self):
        """InvalidInput can be caught as a ValueError."""
        with pytest.raises(ValueError):
            parse_bbox("nope")


class TestValidators:
    """Tests for the pixels and check_zoom helpers."""

    def test_pixels_accepts_whole_numbers(self):
        """Ints, integral floats and numeric strings are accepted."""
        assert pixels(600, "width") == 600
        assert pixels(600.0, "width") == 600
        assert pixels("600", "width") == 600

    @pytest.mark.parametrize("value", [0, -1, 10.5, "wide", None])
    def test_pixels_rejects_others(self, value):
        """Zero, negative, fractional and non numeric sizes are rejected."""
        with pytest.raises(InvalidInput):
            pixels(value, "width")

    @pytest.mark.parametrize("zoom", [0, 12, 21])
    def test_check_zoom_accepts_range(self, zoom):
        """Zoom levels 0 through 21 are accepted."""
        assert check_zoom(zoom) == zoom

    @pytest.mark.parametrize("zoom", [-1, 22, 30])
    def test_check_zoom_rejects_out_of_range(self, zoom):
        """Zoom levels outside [0, 21] are unsupported."""
        with pytest.raises(UnsupportedZoom):
            check_zoom(zoom)

    @pytest.mark.parametrize("zoom", [12.5, "12", True])
    def test_check_zoom_rejects_non_integers(self, zoom):
        """Only real integers are zoom levels."""
        with pytest.raises(InvalidInput):
            check_zoom(zoom)


class TestWindow:
    """Tests for the window helper."""

    def test_window_spans_requested_pixels(self):
        """The window is width x height pixels around the center."""
        bbox = window(100.5, 200.5, 9, 512, 256)
        assert lng_to_x(bbox.west, 9) == pytest.approx(99.5)
        assert lng_to_x(bbox.east, 9) == pytest.approx(101.5)
        assert lat_to_y(bbox.north, 9) == pytest.approx(200.0)
        assert lat_to_y(bbox.south, 9) == pytest.approx(201.0)


class TestCenterMode:
    """Tests for resolving CenterSpec requests."""

    def test_sized_viewport(self):
        """A 256x256 viewport at zoom 12 is 256x256 pixels."""
        viewport = resolve(CenterSpec(mercantile.LngLat(-0.12, 51.5), 12, 256, 256))
        assert (viewport.width, viewport.height, viewport.zoom) == (256, 256, 12)
        assert 1 <= len(viewport.grid) <= 4

    def test_one_tile_when_centered_in_tile(self):
        """A one tile viewport centered on a tile needs only that tile."""
        tile = mercantile.tile(-0.12, 51.5, 12)
        center = mercantile.LngLat(x_to_lng(tile.x + 0.5, 12), y_to_lat(tile.y + 0.5, 12))
        viewport = resolve(CenterSpec(center, 12, 256, 256))
        assert viewport.grid.tiles == [tile]
        assert viewport.grid.crop_offset == pytest.approx((0, 0), abs=1e-6)

    def test_bbox_centered_on_center(self):
        """The box is centered on the requested point in tile space."""
        viewport = resolve(CenterSpec(mercantile.LngLat(13.4, 52.5), 10, 800, 600))
        left, bottom, right, top = viewport.bbox
        assert (lng_to_x(left, 10) + lng_to_x(right, 10)) / 2 == pytest.approx(lng_to_x(13.4, 10))
        assert (lat_to_y(top, 10) + lat_to_y(bottom, 10)) / 2 == pytest.approx(lat_to_y(52.5, 10))
        assert (lng_to_x(right, 10) - lng_to_x(left, 10)) * 256 == pytest.approx(800)
        assert (lat_to_y(bottom, 10) - lat_to_y(top, 10)) * 256 == pytest.approx(600)

    def test_grid_matches_planner(self):
        """The resolved grid is what the planner makes of the box."""
        viewport = resolve(CenterSpec(mercantile.LngLat(13.4, 52.5), 10, 800, 600))
        assert viewport.grid == plan(viewport.bbox, 10)

    def test_unsized_viewport_is_center_tile(self):
        """Without a size the viewport is the tile holding the center."""
        viewport = resolve(CenterSpec(mercantile.LngLat(-0.12, 51.5), 12))
        tile = mercantile.tile(-0.12, 51.5, 12)
        assert viewport.grid.tiles == [tile]
        assert viewport.bbox == mercantile.bounds(tile)
        assert (viewport.width, viewport.height) == (256, 256)
        assert viewport.grid.crop_offset == (0, 0)

    def test_width_without_height_rejected(self):
        """width and height go together."""
        with pytest.raises(InvalidInput, match="together"):
            resolve(CenterSpec(mercantile.LngLat(0, 0), 3, width=256))

    def test_explicit_zoom_validated(self):
        """An explicit zoom above 21 is rejected."""
        with pytest.raises(UnsupportedZoom):
            resolve(CenterSpec(mercantile.LngLat(0, 0), 22, 256, 256))

    @pytest.mark.parametrize("lat", [90, -90, 95])
    def test_polar_center_rejected(self, lat):
        """Poles cannot be projected."""
        with pytest.raises(InvalidInput):
            resolve(CenterSpec(mercantile.LngLat(0, lat), 3, 256, 256))

    @pytest.mark.parametrize("lat", [89.9999999, -89.9999999])
    @pytest.mark.parametrize("size", [(256, 256), (None, None)])
    def test_center_next_to_pole_rejected(self, lat, size):
        """Latitudes whose sine rounds to +-1 are invalid, not a crash."""
        with pytest.raises(InvalidInput, match="pole"):
            resolve(CenterSpec(mercantile.LngLat(0, lat), 3, *size))

    def test_viewport_reaching_past_pole_rejected(self):
        """A window tall enough to reach the pole cannot be planned."""
        with pytest.raises(InvalidInput):
            resolve(CenterSpec(mercantile.LngLat(0, 89.99999), 0, 256, 5120))

    def test_no_requested_box(self):
        """Center requests have no requested box."""
        assert resolve(CenterSpec(mercantile.LngLat(0, 0), 3, 256, 256)).requested is None


class TestBboxMode:
    """Tests for resolving BboxSpec requests."""

    def test_london(self):
        """The London box resolves at zoom 10 to 600x400."""
        spec = BboxSpec(mercantile.LngLatBbox(-0.2, 51.4, 0.1, 51.6), 600, 400)
        viewport = resolve(spec)
        assert viewport.zoom == 10
        assert (viewport.width, viewport.height) == (600, 400)
        assert len(viewport.grid) == viewport.grid.columns * viewport.grid.rows
        assert viewport.grid == plan(viewport.bbox, 10)

    def test_output_contains_requested_box(self):
        """The canonical box is the pixel window around the requested one."""
        requested = mercantile.LngLatBbox(-0.2, 51.4, 0.1, 51.6)
        left, bottom, right, top = resolve(BboxSpec(requested, 600, 400)).bbox
        assert left < requested.west and right > requested.east
        assert bottom < requested.south and top > requested.north

    def test_canonical_box_matches_pixel_size(self):
        """Edges of the canonical box are exactly width x height pixels apart."""
        viewport = resolve(BboxSpec(mercantile.LngLatBbox(-0.2, 51.4, 0.1, 51.6), 600, 400))
        left, bottom, right, top = viewport.bbox
        z = viewport.zoom
        assert (lng_to_x(right, z) - lng_to_x(left, z)) * 256 == pytest.approx(600)
        assert (lat_to_y(bottom, z) - lat_to_y(top, z)) * 256 == pytest.approx(400)

    def test_antimeridian(self):
        """A box from 170E to 170W gets a positive zoom and stays centered on 180."""
        viewport = resolve(BboxSpec(mercantile.LngLatBbox(170, -10, -170, 10), 600, 400))
        assert viewport.zoom == 4
        left, _, right, _ = viewport.bbox
        assert (left + right) / 2 == pytest.approx(180)
        assert viewport.grid.columns * 256 >= 600

    def test_degenerate_box_rejected(self):
        """Zero area boxes fail before any zoom is computed."""
        with pytest.raises(InvalidInput):
            resolve(BboxSpec(mercantile.LngLatBbox(1, 1, 1, 1), 600, 400))

    def test_missing_size_rejected(self):
        """Bbox mode needs a pixel size."""
        with pytest.raises(InvalidInput):
            resolve(BboxSpec(mercantile.LngLatBbox(0, 0, 1, 1), None, 400))

    def test_requested_box_kept(self):
        """The box as given is kept beside the canonical one."""
        viewport = resolve(BboxSpec((-0.2, 51.4, 0.1, 51.6), 600, 400))
        assert viewport.requested == mercantile.LngLatBbox(-0.2, 51.4, 0.1, 51.6)
        assert viewport.bbox != viewport.requested
        assert "requested" not in viewport.metadata()

    @pytest.mark.parametrize("bbox", [(0, 10, 10, 89.9999999), (0, -89.9999999, 10, 10)])
    def test_box_next_to_pole_rejected(self, bbox):
        """Edges whose sine rounds to +-1 are invalid, not a crash."""
        with pytest.raises(InvalidInput, match="pole"):
            resolve(BboxSpec(mercantile.LngLatBbox(*bbox), 600, 400))


class TestResolve:
    """Tests for the resolve dispatcher."""

    def test_result_is_immutable(self):
        """ResolvedViewport values are frozen."""
        viewport = resolve(CenterSpec(mercantile.LngLat(0, 0), 3))
        with pytest.raises(dataclasses.FrozenInstanceError):
            viewport.zoom = 4

    def test_same_spec_same_viewport(self):
        """Resolving is deterministic."""
        spec = BboxSpec(mercantile.LngLatBbox(-0.2, 51.4, 0.1, 51.6), 600, 400)
        assert resolve(spec) == resolve(spec)

    def test_rejects_unknown_spec(self):
        """Only BboxSpec and CenterSpec are accepted."""
        with pytest.raises(TypeError):
            resolve({"bbox": "0,0,1,1"})

    def test_metadata(self):
        """metadata reports the canonical box as a string and the tile count."""
        viewport = resolve(CenterSpec(mercantile.LngLat(0, 0), 1))
        meta = viewport.metadata()
        assert meta == {
            "bbox": viewport.bbox_string,
            "width": 256,
            "height": 256,
            "zoom": 1,
            "tile_count": 1,
        }
        assert meta["bbox"].count(",") == 3
        assert isinstance(viewport, ResolvedViewport)
