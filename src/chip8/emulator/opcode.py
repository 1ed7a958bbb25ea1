r"""
CHIP-8 Instruction Decoder
==========================

Splits a 16-bit instruction word into its addressing fields and classifies
it as one of the defined CHIP-8 instructions.

Instruction word layout (big-endian):

    15    12 11     8 7      4 3      0
    +-------+--------+--------+--------+
    |  op   |   X    |   Y    |   N    |
    +-------+--------+--------+--------+
             \_________ NNN __________/
                      \_____ NN ______/

Decoding is pure and total: every word decodes, and words that match no
defined instruction decode to Op.UNKNOWN so the engine can raise a
DecodeError instead of silently skipping them.

Copyright (c) 2025 chip8-vm Contributors
"""

from dataclasses import dataclass
from enum import Enum, auto


@dataclass(frozen=True)
class Opcode:
    """
    Field accessors for a raw 16-bit instruction word.

    Example:
        >>> op = Opcode(0x1234)
        >>> hex(op.nnn), op.x, op.y
        ('0x234', 2, 3)
    """
    value: int

    @property
    def highest_nibble(self) -> int:
        """Bits 12-15, the instruction family."""
        return (self.value >> 12) & 0xF

    @property
    def lowest_nibble(self) -> int:
        """Bits 0-3, sub-opcode in families 0x8 and 0xE (N)."""
        return self.value & 0x000F

    @property
    def lowest_byte(self) -> int:
        """Bits 0-7, immediate value or sub-opcode selector (NN)."""
        return self.value & 0x00FF

    @property
    def nnn(self) -> int:
        """Bits 0-11, a 12-bit address."""
        return self.value & 0x0FFF

    @property
    def x(self) -> int:
        """Bits 8-11, register selector X."""
        return (self.value >> 8) & 0xF

    @property
    def y(self) -> int:
        """Bits 4-7, register selector Y."""
        return (self.value >> 4) & 0xF


class Op(Enum):
    """One member per defined CHIP-8 instruction."""
    CLS = auto()            # 00E0
    RET = auto()            # 00EE
    JP = auto()             # 1NNN
    CALL = auto()           # 2NNN
    SE_IMM = auto()         # 3XNN
    SNE_IMM = auto()        # 4XNN
    SE_REG = auto()         # 5XY0
    LD_IMM = auto()         # 6XNN
    ADD_IMM = auto()        # 7XNN
    LD_REG = auto()         # 8XY0
    OR = auto()             # 8XY1
    AND = auto()            # 8XY2
    XOR = auto()            # 8XY3
    ADD_REG = auto()        # 8XY4
    SUB = auto()            # 8XY5
    SHR = auto()            # 8XY6
    SUBN = auto()           # 8XY7
    SHL = auto()            # 8XYE
    SNE_REG = auto()        # 9XY0
    LD_I = auto()           # ANNN
    JP_V0 = auto()          # BNNN
    RND = auto()            # CXNN
    DRW = auto()            # DXYN
    SKP = auto()            # EX9E
    SKNP = auto()           # EXA1
    LD_VX_DT = auto()       # FX07
    LD_VX_KEY = auto()      # FX0A
    LD_DT_VX = auto()       # FX15
    LD_ST_VX = auto()       # FX18
    ADD_I = auto()          # FX1E
    LD_FONT = auto()        # FX29
    LD_BCD = auto()         # FX33
    LD_MEM_REGS = auto()    # FX55
    LD_REGS_MEM = auto()    # FX65
    UNKNOWN = auto()


# Secondary dispatch tables for the families that need one
ALU_OPS = {
    0x0: Op.LD_REG,
    0x1: Op.OR,
    0x2: Op.AND,
    0x3: Op.XOR,
    0x4: Op.ADD_REG,
    0x5: Op.SUB,
    0x6: Op.SHR,
    0x7: Op.SUBN,
    0xE: Op.SHL,
}

KEY_OPS = {
    0x9E: Op.SKP,
    0xA1: Op.SKNP,
}

MISC_OPS = {
    0x07: Op.LD_VX_DT,
    0x0A: Op.LD_VX_KEY,
    0x15: Op.LD_DT_VX,
    0x18: Op.LD_ST_VX,
    0x1E: Op.ADD_I,
    0x29: Op.LD_FONT,
    0x33: Op.LD_BCD,
    0x55: Op.LD_MEM_REGS,
    0x65: Op.LD_REGS_MEM,
}

# Mnemonic templates, used for diagnostics and debug traces
MNEMONICS = {
    Op.CLS: "CLS",
    Op.RET: "RET",
    Op.JP: "JP ${nnn:03X}",
    Op.CALL: "CALL ${nnn:03X}",
    Op.SE_IMM: "SE V{x:X}, ${nn:02X}",
    Op.SNE_IMM: "SNE V{x:X}, ${nn:02X}",
    Op.SE_REG: "SE V{x:X}, V{y:X}",
    Op.LD_IMM: "LD V{x:X}, ${nn:02X}",
    Op.ADD_IMM: "ADD V{x:X}, ${nn:02X}",
    Op.LD_REG: "LD V{x:X}, V{y:X}",
    Op.OR: "OR V{x:X}, V{y:X}",
    Op.AND: "AND V{x:X}, V{y:X}",
    Op.XOR: "XOR V{x:X}, V{y:X}",
    Op.ADD_REG: "ADD V{x:X}, V{y:X}",
    Op.SUB: "SUB V{x:X}, V{y:X}",
    Op.SHR: "SHR V{x:X}",
    Op.SUBN: "SUBN V{x:X}, V{y:X}",
    Op.SHL: "SHL V{x:X}",
    Op.SNE_REG: "SNE V{x:X}, V{y:X}",
    Op.LD_I: "LD I, ${nnn:03X}",
    Op.JP_V0: "JP V0, ${nnn:03X}",
    Op.RND: "RND V{x:X}, ${nn:02X}",
    Op.DRW: "DRW V{x:X}, V{y:X}, {n}",
    Op.SKP: "SKP V{x:X}",
    Op.SKNP: "SKNP V{x:X}",
    Op.LD_VX_DT: "LD V{x:X}, DT",
    Op.LD_VX_KEY: "LD V{x:X}, K",
    Op.LD_DT_VX: "LD DT, V{x:X}",
    Op.LD_ST_VX: "LD ST, V{x:X}",
    Op.ADD_I: "ADD I, V{x:X}",
    Op.LD_FONT: "LD F, V{x:X}",
    Op.LD_BCD: "LD B, V{x:X}",
    Op.LD_MEM_REGS: "LD [I], V{x:X}",
    Op.LD_REGS_MEM: "LD V{x:X}, [I]",
    Op.UNKNOWN: "DW ${opcode:04X}",
}


@dataclass(frozen=True)
class Instruction:
    """
    A decoded instruction: the Op tag plus every addressing field.

    All fields are always populated; each Op reads only the ones it needs.

    Attributes:
        op: Which instruction this is
        opcode: The raw 16-bit word
        x, y: Register selectors
        n: Lowest nibble (sprite height for DRW)
        nn: Lowest byte (immediate)
        nnn: 12-bit address
    """
    op: Op
    opcode: int
    x: int
    y: int
    n: int
    nn: int
    nnn: int

    def __str__(self) -> str:
        return MNEMONICS[self.op].format(
            opcode=self.opcode, x=self.x, y=self.y, n=self.n, nn=self.nn, nnn=self.nnn
        )


def classify(word: Opcode) -> Op:
    """
    Select the Op for an instruction word.

    Dispatches on the highest nibble, then on the lowest byte (families
    0x0, 0xE, 0xF) or lowest nibble (family 0x8).
    """
    match word.highest_nibble:
        case 0x0:
            if word.lowest_byte == 0xE0:
                return Op.CLS
            if word.lowest_byte == 0xEE:
                return Op.RET
            return Op.UNKNOWN
        case 0x1:
            return Op.JP
        case 0x2:
            return Op.CALL
        case 0x3:
            return Op.SE_IMM
        case 0x4:
            return Op.SNE_IMM
        case 0x5:
            return Op.SE_REG
        case 0x6:
            return Op.LD_IMM
        case 0x7:
            return Op.ADD_IMM
        case 0x8:
            return ALU_OPS.get(word.lowest_nibble, Op.UNKNOWN)
        case 0x9:
            return Op.SNE_REG
        case 0xA:
            return Op.LD_I
        case 0xB:
            return Op.JP_V0
        case 0xC:
            return Op.RND
        case 0xD:
            return Op.DRW
        case 0xE:
            return KEY_OPS.get(word.lowest_byte, Op.UNKNOWN)
        case _:
            return MISC_OPS.get(word.lowest_byte, Op.UNKNOWN)


def decode(value: int) -> Instruction:
    """
    Decode a 16-bit instruction word.

    Args:
        value: Instruction word (only the low 16 bits are used)

    Returns:
        Instruction with op set to Op.UNKNOWN if the word is undefined

    Example:
        >>> decode(0xD125)
        Instruction(op=<Op.DRW: 23>, opcode=53541, x=1, y=2, n=5, nn=37, nnn=293)
        >>> str(decode(0xD125))
        'DRW V1, V2, 5'
    """
    word = Opcode(value & 0xFFFF)
    return Instruction(
        op=classify(word),
        opcode=word.value,
        x=word.x,
        y=word.y,
        n=word.lowest_nibble,
        nn=word.lowest_byte,
        nnn=word.nnn,
    )
