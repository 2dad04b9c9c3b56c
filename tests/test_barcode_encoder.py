"""
Unit tests for the barcode encoder.

The Code 128 symbol comes from python-barcode; these tests cover the
calling contract: validation, sizing and placement in the pixel box.
"""

import pytest

from core.exceptions import EncodeError
from modules.barcode_encoder import (
    QUIET_ZONE_MODULES,
    BitMatrix,
    build_modules,
    check_payload,
    encode,
)


class TestBuildModules:
    """Test the wrapped symbology encoder."""

    def test_code128_structure(self):
        """Start code, 11-module symbols, 13-module stop pattern."""
        modules = build_modules("ABC-1001")

        assert set(modules) <= {"0", "1"}
        assert modules.startswith("11010")
        assert modules.endswith("11")
        assert (len(modules) - 13) % 11 == 0

    def test_deterministic(self):
        assert build_modules("4791234567890") == build_modules("4791234567890")

    def test_different_payloads_differ(self):
        assert build_modules("ABC-1001") != build_modules("ABC-1002")


class TestCheckPayload:
    """Test payload validation."""

    def test_ascii_accepted(self):
        assert check_payload("ABC-1001 x/y") == "ABC-1001 x/y"

    def test_empty_rejected(self):
        with pytest.raises(EncodeError):
            check_payload("")

    @pytest.mark.parametrize("payload", ["ABC€", "条码", "naïve"])
    def test_non_ascii_rejected(self, payload):
        with pytest.raises(EncodeError) as exc_info:
            check_payload(payload)

        assert exc_info.value.payload == payload
        assert exc_info.value.symbology == "code128"


class TestEncode:
    """Test sizing of the module matrix."""

    def test_matrix_matches_box(self):
        matrix = encode("ABC-1001", 442, 160)

        assert isinstance(matrix, BitMatrix)
        assert matrix.size == (442, 160)
        assert len(matrix.row) == 442

    def test_module_width_is_largest_integer_that_fits(self):
        full_width = len(build_modules("ABC-1001")) + 2 * QUIET_ZONE_MODULES

        matrix = encode("ABC-1001", 442, 160)

        assert matrix.module_px == 442 // full_width
        assert matrix.module_px >= 1

    def test_quiet_zone_is_light(self):
        matrix = encode("ABC-1001", 442, 160)
        quiet = QUIET_ZONE_MODULES * matrix.module_px

        assert not any(matrix.row[:quiet])
        assert not any(matrix.row[-quiet:])
        assert any(matrix.row)

    def test_symbol_is_centered(self):
        matrix = encode("4791234567890", 442, 160)
        dark = [x for x, bit in enumerate(matrix.row) if bit]

        left_gap = dark[0]
        right_gap = matrix.width - 1 - dark[-1]
        # Modules end in a bar on both sides, so gaps differ only by rounding
        assert abs(left_gap - right_gap) <= 1

    def test_get_reads_every_row_the_same(self):
        matrix = encode("ABC-1001", 442, 20)

        for x in range(0, matrix.width, 7):
            assert matrix.get(x, 0) == matrix.get(x, 19)

    def test_get_out_of_range(self):
        matrix = encode("ABC-1001", 442, 20)

        with pytest.raises(IndexError):
            matrix.get(442, 0)

    def test_to_image(self):
        matrix = encode("ABC-1001", 300, 50)
        image = matrix.to_image()

        assert image.size == (300, 50)
        assert image.mode == "RGB"
        colors = {color for _, color in image.getcolors()}
        assert colors == {(0, 0, 0), (255, 255, 255)}

    def test_unsupported_characters(self):
        with pytest.raises(EncodeError):
            encode("ABC€", 442, 160)

    def test_empty_payload(self):
        with pytest.raises(EncodeError):
            encode("", 442, 160)

    def test_box_too_narrow(self):
        with pytest.raises(EncodeError) as exc_info:
            encode("ABC-1001", 40, 160)

        assert "modules" in exc_info.value.message

    @pytest.mark.parametrize("width,height", [(0, 160), (442, 0), (-1, 10)])
    def test_non_positive_box(self, width, height):
        with pytest.raises(EncodeError):
            encode("ABC-1001", width, height)
