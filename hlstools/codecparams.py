"""Generation of RFC 6381 codec parameter strings."""

from __future__ import annotations

from dataclasses import dataclass

from hlstools.codec_types import AV1, H264, H265, VP9, Codec, MPEG4Audio, Opus

_AV1_OBU_SEQUENCE_HEADER = 1
_H265_NALU_TYPE_SPS = 33


def leading_zeros(v: int, size: int) -> str:
    """Format ``v`` in base 10, padded with zeros to at least ``size`` characters."""
    return str(v).rjust(size, "0")


class _BitReader:
    def __init__(self, data: bytes) -> None:
        self._value = int.from_bytes(data, "big")
        self._total = len(data) * 8
        self._pos = 0

    def read(self, n: int) -> int:
        end = self._pos + n
        if end > self._total:
            raise ValueError("not enough bits")
        self._pos = end
        return (self._value >> (self._total - end)) & ((1 << n) - 1)

    def flag(self) -> bool:
        return bool(self.read(1))

    def uvlc(self) -> int:
        zeros = 0
        while not self.flag():
            zeros += 1
            if zeros >= 32:
                return (1 << 32) - 1
        return self.read(zeros) + (1 << zeros) - 1


@dataclass
class _AV1Params:
    profile: int
    level: int
    tier: bool
    bit_depth: int
    mono_chrome: bool
    subsampling_x: bool
    subsampling_y: bool
    chroma_sample_position: int
    color_description_present: bool
    color_primaries: int
    transfer_characteristics: int
    matrix_coefficients: int
    color_range: bool


def _av1_obu_payload(obu: bytes) -> bytes:
    if not obu:
        raise ValueError("empty OBU")
    header = obu[0]
    if header & 0x80:
        raise ValueError("forbidden bit set")
    if (header >> 3) & 0x0F != _AV1_OBU_SEQUENCE_HEADER:
        raise ValueError("not a sequence header")

    pos = 2 if header & 0x04 else 1
    if not header & 0x02:
        return obu[pos:]

    size = 0
    for shift in range(0, 56, 7):
        if pos >= len(obu):
            raise ValueError("truncated OBU size")
        byte = obu[pos]
        pos += 1
        size |= (byte & 0x7F) << shift
        if not byte & 0x80:
            break
    if pos + size > len(obu):
        raise ValueError("truncated OBU")
    return obu[pos:pos + size]


def _parse_av1_sequence_header(obu: bytes) -> _AV1Params:
    r = _BitReader(_av1_obu_payload(obu))

    profile = r.read(3)
    r.read(1)  # still_picture
    reduced = r.flag()

    if reduced:
        level = r.read(5)
        tier = False
    else:
        decoder_model_info_present = False
        buffer_delay_length = 0
        if r.flag():  # timing_info_present_flag
            r.read(32)
            r.read(32)
            if r.flag():
                r.uvlc()
            decoder_model_info_present = r.flag()
            if decoder_model_info_present:
                buffer_delay_length = r.read(5) + 1
                r.read(32)
                r.read(5)
                r.read(5)
        initial_display_delay_present = r.flag()

        level, tier = 0, False
        for index in range(r.read(5) + 1):
            r.read(12)
            op_level = r.read(5)
            op_tier = r.flag() if op_level > 7 else False
            if decoder_model_info_present and r.flag():
                r.read(buffer_delay_length)
                r.read(buffer_delay_length)
                r.read(1)
            if initial_display_delay_present and r.flag():
                r.read(4)
            if index == 0:
                level, tier = op_level, op_tier

    width_bits = r.read(4) + 1
    height_bits = r.read(4) + 1
    r.read(width_bits)
    r.read(height_bits)

    if not reduced and r.flag():  # frame_id_numbers_present_flag
        r.read(4)
        r.read(3)

    r.read(3)  # use_128x128_superblock, enable_filter_intra, enable_intra_edge_filter

    if not reduced:
        r.read(4)  # interintra, masked compound, warped motion, dual filter
        order_hint = r.flag()
        if order_hint:
            r.read(2)
        force_screen_content_tools = 2 if r.flag() else r.read(1)
        if force_screen_content_tools > 0 and not r.flag():
            r.read(1)
        if order_hint:
            r.read(3)

    r.read(3)  # enable_superres, enable_cdef, enable_restoration

    high_bitdepth = r.flag()
    if profile == 2 and high_bitdepth:
        bit_depth = 12 if r.flag() else 10
    else:
        bit_depth = 10 if high_bitdepth else 8

    mono_chrome = False if profile == 1 else r.flag()

    description_present = r.flag()
    primaries = transfer = matrix = 2
    if description_present:
        primaries = r.read(8)
        transfer = r.read(8)
        matrix = r.read(8)

    subsampling_x = subsampling_y = True
    chroma_sample_position = 0
    if mono_chrome:
        color_range = r.flag()
    elif primaries == 1 and transfer == 13 and matrix == 0:
        color_range = True
        subsampling_x = subsampling_y = False
    else:
        color_range = r.flag()
        if profile == 1:
            subsampling_x = subsampling_y = False
        elif profile != 0:
            if bit_depth == 12:
                subsampling_x = r.flag()
                subsampling_y = r.flag() if subsampling_x else False
            else:
                subsampling_y = False
        if subsampling_x and subsampling_y:
            chroma_sample_position = r.read(2)

    return _AV1Params(
        profile=profile,
        level=level,
        tier=tier,
        bit_depth=bit_depth,
        mono_chrome=mono_chrome,
        subsampling_x=subsampling_x,
        subsampling_y=subsampling_y,
        chroma_sample_position=chroma_sample_position,
        color_description_present=description_present,
        color_primaries=primaries,
        transfer_characteristics=transfer,
        matrix_coefficients=matrix,
        color_range=color_range,
    )


def _marshal_av1(sequence_header: bytes) -> str:
    sh = _parse_av1_sequence_header(sequence_header)
    value = (
        f"av01.{sh.profile}."
        f"{leading_zeros(sh.level, 2)}{'H' if sh.tier else 'M'}."
        f"{leading_zeros(sh.bit_depth, 2)}."
        f"{int(sh.mono_chrome)}."
        f"{int(sh.subsampling_x)}{int(sh.subsampling_y)}"
        f"{sh.chroma_sample_position}."
    )
    if sh.color_description_present:
        value += (
            f"{leading_zeros(sh.color_primaries, 2)}."
            f"{leading_zeros(sh.transfer_characteristics, 2)}."
            f"{leading_zeros(sh.matrix_coefficients, 2)}."
            f"{int(sh.color_range)}"
        )
    else:
        value += "01.01.01.0"
    return value


def _remove_emulation_prevention(data: bytes) -> bytes:
    out = bytearray()
    zeros = 0
    for byte in data:
        if zeros >= 2 and byte == 3:
            zeros = 0
            continue
        out.append(byte)
        zeros = zeros + 1 if byte == 0 else 0
    return bytes(out)


def _marshal_h265(sps: bytes) -> str:
    if len(sps) < 2 or (sps[0] >> 1) & 0x3F != _H265_NALU_TYPE_SPS:
        raise ValueError("not a SPS")
    rbsp = _remove_emulation_prevention(sps[2:])
    if len(rbsp) < 13:
        raise ValueError("SPS too short")

    ptl = rbsp[1:13]
    profile_space = ptl[0] >> 6
    tier_flag = (ptl[0] >> 5) & 1
    profile_idc = ptl[0] & 0x1F

    # compatibility flags are stored first-flag-first; flag j maps to bit j
    compat_bits = f"{int.from_bytes(ptl[1:5], 'big'):032b}"
    compatibility = int(compat_bits[::-1], 2)

    constraints = [f"{ptl[5]:x}"]
    second = ptl[6] & 0xFC
    if second:
        constraints.append(f"{second:x}")

    space = chr(ord("A") + profile_space - 1) if 1 <= profile_space <= 3 else ""

    return (
        f"hvc1.{space}{profile_idc}."
        f"{compatibility:x}."
        f"{'H' if tier_flag else 'L'}{ptl[11]}."
        + ".".join(constraints)
    )


def marshal(codec: Codec) -> str:
    """Return the codec parameter string of ``codec``, or "" when it cannot be built."""
    match codec:
        case AV1(sequence_header=header):
            try:
                return _marshal_av1(header)
            except ValueError:
                return ""

        case VP9():
            return f"vp09.{leading_zeros(codec.profile, 2)}.10.{leading_zeros(codec.bit_depth, 2)}"

        case H265(sps=sps):
            try:
                return _marshal_h265(sps)
            except ValueError:
                return ""

        case H264(sps=sps):
            if len(sps) >= 4:
                return "avc1." + sps[1:4].hex()
            return ""

        case Opus():
            return "opus"

        case MPEG4Audio(config=config):
            return f"mp4a.40.{config.type}"

    return ""