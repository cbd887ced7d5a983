"""Tests for line rasterization and session value types."""

import numpy as np
import pytest

from slowscan.sstv.modes import MARTIN_1, ROBOT_36, ROBOT_8_BW, SSTVMode
from slowscan.sstv.rasterizer import rasterize_line
from slowscan.sstv.session import (
    DecodedImage,
    DecoderSession,
    new_line_buffer,
    with_sample,
)


class TestRasterizeLine:
    """Tests for rasterize_line."""

    def test_empty_yuv_line_is_mid_grey(self):
        row = rasterize_line(new_line_buffer(ROBOT_36), ROBOT_36)
        assert row.shape == (320, 3)
        assert row.dtype == np.uint8
        assert (row == 128).all()

    def test_empty_bw_line_is_black(self):
        row = rasterize_line(new_line_buffer(ROBOT_8_BW), ROBOT_8_BW)
        assert row.shape == (160, 3)
        assert (row == 0).all()

    def test_empty_rgb_line_is_black(self):
        row = rasterize_line({}, MARTIN_1)
        assert (row == 0).all()

    def test_bw_luma_replicated(self):
        buffer = with_sample(new_line_buffer(ROBOT_8_BW), 'Y', 3, 200.4)
        row = rasterize_line(buffer, ROBOT_8_BW)
        assert tuple(row[3]) == (200, 200, 200)
        assert tuple(row[4]) == (0, 0, 0)

    def test_rgb_partial_channels(self):
        buffer = new_line_buffer(MARTIN_1)
        buffer = with_sample(buffer, 'R', 10, 255.0)
        buffer = with_sample(buffer, 'B', 10, 99.6)
        row = rasterize_line(buffer, MARTIN_1)
        assert tuple(row[10]) == (255, 0, 100)

    def test_chroma_resampled_to_full_width(self):
        """160 chroma samples cover 320 luma columns, two per sample."""
        buffer = new_line_buffer(ROBOT_36)
        buffer['U'] = [128.0] * 160
        buffer = with_sample(buffer, 'U', 5, 200.0)
        row = rasterize_line(buffer, ROBOT_36)
        # b = 128 + 1.772 * 72, clamped
        assert row[10, 2] == 255
        assert row[11, 2] == 255
        assert row[9, 2] == 128
        assert row[12, 2] == 128

    def test_partial_chroma_stretched_across_row(self):
        """A chroma line cut short spans the row instead of going neutral."""
        buffer = new_line_buffer(ROBOT_36)
        buffer['Y'] = [128.0] * 320
        buffer['V'] = [128.0] * 160
        buffer['U'] = [200.0] * 80 + [None] * 80
        row = rasterize_line(buffer, ROBOT_36)
        # column 300 reads U slot 300 * 80 // 320 = 75
        assert row[300, 2] == 255
        assert (row[:, 2] == 255).all()
        assert row[300, 0] == 128

    def test_chroma_count_ends_at_last_written_slot(self):
        buffer = new_line_buffer(ROBOT_36)
        buffer = with_sample(buffer, 'U', 0, 128.0)
        buffer = with_sample(buffer, 'U', 3, 200.0)
        row = rasterize_line(buffer, ROBOT_36)
        # four samples over 320 columns: 80 columns each, slots 1-2 unwritten
        assert row[79, 2] == 128
        assert row[160, 2] == 128
        assert row[239, 2] == 128
        assert row[240, 2] == 255
        assert row[319, 2] == 255

    def test_yuv_conversion(self):
        buffer = new_line_buffer(ROBOT_36)
        buffer = with_sample(buffer, 'Y', 0, 100.0)
        buffer = with_sample(buffer, 'V', 0, 150.0)
        row = rasterize_line(buffer, ROBOT_36)
        r, g, b = row[0]
        assert r == round(100 + 1.402 * 22)
        assert g == round(100 - 0.71414 * 22)
        assert b == 100


class TestLineBuffer:
    """Tests for copy-on-write line buffers."""

    def test_sized_per_component(self):
        buffer = new_line_buffer(ROBOT_36)
        assert {k: len(v) for k, v in buffer.items()} == {'Y': 320, 'V': 160, 'U': 160}

    def test_with_sample_copies(self):
        buffer = new_line_buffer(ROBOT_36)
        updated = with_sample(buffer, 'Y', 1, 10.0)
        assert buffer['Y'][1] is None
        assert updated['Y'][1] == 10.0
        assert updated['V'] is buffer['V']

    def test_last_write_wins(self):
        buffer = with_sample(new_line_buffer(ROBOT_36), 'Y', 1, 10.0)
        buffer = with_sample(buffer, 'Y', 1, 20.0)
        assert buffer['Y'][1] == 20.0


class TestDecoderSession:
    """Tests for the session value type."""

    def test_start_is_idle(self):
        session = DecoderSession.start(SSTVMode.SCOTTIE1)
        assert not session.decoding
        assert session.scan_row == 0
        assert session.strike_count == 0
        assert session.confidence == 0
        assert session.raster.shape == (256, 320, 3)
        assert set(session.line_buffer) == {'G', 'B', 'R'}

    def test_to_dict(self):
        data = DecoderSession.start(SSTVMode.ROBOT36).to_dict()
        assert data['mode'] == 'Robot 36'
        assert data['total_rows'] == 240
        assert data['progress'] == 0
        assert data['decoding'] is False


class TestDecodedImage:
    """Tests for DecodedImage."""

    def test_create_freezes_copy(self):
        raster = np.zeros((120, 160, 3), dtype=np.uint8)
        image = DecodedImage.create(raster, SSTVMode.ROBOT8_BW)
        raster[0, 0] = 255
        assert image.raster[0, 0, 0] == 0
        with pytest.raises(ValueError):
            image.raster[0, 0, 0] = 1

    def test_ids_unique(self):
        raster = np.zeros((2, 2, 3), dtype=np.uint8)
        ids = {DecodedImage.create(raster, SSTVMode.ROBOT36).id for _ in range(50)}
        assert len(ids) == 50

    def test_to_image(self):
        raster = np.zeros((120, 160, 3), dtype=np.uint8)
        raster[:, :, 1] = 200
        image = DecodedImage.create(raster, SSTVMode.ROBOT8_BW).to_image()
        assert image.size == (160, 120)
        assert image.mode == 'RGB'
        assert image.getpixel((5, 5)) == (0, 200, 0)

    def test_to_dict(self):
        image = DecodedImage.create(np.zeros((120, 160, 3), dtype=np.uint8),
                                    SSTVMode.ROBOT8_BW)
        data = image.to_dict()
        assert data['id'] == image.id
        assert data['mode'] == 'Robot 8 (B/W)'
        assert (data['width'], data['height']) == (160, 120)
