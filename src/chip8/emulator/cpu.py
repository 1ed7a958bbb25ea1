"""
CHIP-8 CPU Emulator
===================

Register file, call stack, timers and the execution engine.

The CHIP-8 has:
- 16 8-bit general registers V0-VF (VF doubles as carry/borrow/collision flag)
- 16-bit index register I
- Program counter PC (starts at $200)
- 16-level return-address stack with stack pointer SP
- Delay and sound timers (8-bit, count down to zero)

One cycle fetches the big-endian word at PC, decodes it into a tagged
Instruction, executes it, then ticks both timers. Each instruction sets PC
itself (+2 sequential, +4 skip, or a jump target); the cycle driver never
advances it.

FX0A (wait for key) never spins. With no key down it leaves PC on the
instruction and sets the awaiting_key flag; every following cycle polls the
keypad before fetching until a key is down, so the host keeps control for
input and rendering between cycles.

Copyright (c) 2025 chip8-vm Contributors
"""

import functools
import logging
import random
from dataclasses import dataclass, field
from typing import Callable, Optional

from chip8.errors import (
    DecodeError,
    InvalidKeyError,
    MemoryAccessError,
    StackOverflowError,
    StackUnderflowError,
)
from .display import Framebuffer
from .keypad import Keypad, NUM_KEYS
from .memory import Memory, PROGRAM_START
from .opcode import Instruction, Op, decode

logger = logging.getLogger(__name__)


NUM_REGISTERS = 16
STACK_DEPTH = 16
FLAG = 0xF


@dataclass
class CPUState:
    """
    Complete CPU state.

    All values stored as Python ints but represent:
    - v: 16 x 8-bit unsigned (0-255)
    - i, pc: 16-bit unsigned
    - sp: 0-16, number of return addresses on the stack
    - delay_timer, sound_timer: 8-bit unsigned
    - awaiting_key: FX0A is suspended waiting for a key
    - key_register: register FX0A will store the key in
    """
    v: list[int] = field(default_factory=lambda: [0] * NUM_REGISTERS)
    i: int = 0
    pc: int = PROGRAM_START
    sp: int = 0
    stack: list[int] = field(default_factory=lambda: [0] * STACK_DEPTH)
    delay_timer: int = 0
    sound_timer: int = 0
    awaiting_key: bool = False
    key_register: int = 0


def default_random_byte(seed: Optional[int] = None) -> Callable[[], int]:
    """Return a zero-argument callable producing uniform random bytes."""
    return functools.partial(random.Random(seed).getrandbits, 8)


class Chip8CPU:
    """
    CHIP-8 execution engine.

    The CPU exclusively owns memory, registers, stack, timers and the
    framebuffer. The keypad is owned by the host and only read here.

    Instrumentation:
        on_instruction(pc, opcode) -> bool is called before each fetched
        instruction executes; returning False stops before executing it.

    Example:
        >>> cpu = Chip8CPU(Memory(bytes([0x60, 0x2A])), Framebuffer(), Keypad())
        >>> cpu.cycle()
        True
        >>> cpu.v[0], hex(cpu.pc)
        (42, '0x202')
    """

    def __init__(
        self,
        memory: Memory,
        display: Framebuffer,
        keypad: Keypad,
        random_byte: Optional[Callable[[], int]] = None,
        wrap_sprites: bool = False,
    ):
        """
        Initialize CPU.

        Args:
            memory: Loaded memory (font and ROM)
            display: Framebuffer mutated by CLS/DRW
            keypad: Input latch read by SKP/SKNP/FX0A
            random_byte: Zero-argument callable returning 0-255 for CXNN
            wrap_sprites: Wrap sprites at the screen edges instead of clipping
        """
        self.memory = memory
        self.display = display
        self.keypad = keypad
        self.random_byte = random_byte or default_random_byte()
        self.wrap_sprites = wrap_sprites
        self.state = CPUState()

        self.on_instruction: Optional[Callable[[int, int], bool]] = None

    # ========================================
    # Register Properties
    # ========================================

    @property
    def v(self) -> list[int]:
        """General registers V0-VF. Assign through set_v() to keep 8-bit values."""
        return self.state.v

    def set_v(self, register: int, value: int) -> None:
        """Write a general register (masked to 8 bits)."""
        self.state.v[register] = value & 0xFF

    @property
    def i(self) -> int:
        """Index register (16-bit)."""
        return self.state.i

    @i.setter
    def i(self, value: int) -> None:
        self.state.i = value & 0xFFFF

    @property
    def pc(self) -> int:
        """Program counter (16-bit)."""
        return self.state.pc

    @pc.setter
    def pc(self, value: int) -> None:
        self.state.pc = value & 0xFFFF

    @property
    def sp(self) -> int:
        """Stack pointer: number of return addresses stored (0-16)."""
        return self.state.sp

    @property
    def stack(self) -> tuple[int, ...]:
        """Return addresses currently on the stack, oldest first."""
        return tuple(self.state.stack[:self.state.sp])

    @property
    def delay_timer(self) -> int:
        """Delay timer (8-bit)."""
        return self.state.delay_timer

    @delay_timer.setter
    def delay_timer(self, value: int) -> None:
        self.state.delay_timer = value & 0xFF

    @property
    def sound_timer(self) -> int:
        """Sound timer (8-bit)."""
        return self.state.sound_timer

    @sound_timer.setter
    def sound_timer(self, value: int) -> None:
        self.state.sound_timer = value & 0xFF

    @property
    def sound_active(self) -> bool:
        """True while the sound timer is nonzero (the host may beep)."""
        return self.state.sound_timer > 0

    @property
    def awaiting_key(self) -> bool:
        """True while FX0A is suspended waiting for a key press."""
        return self.state.awaiting_key

    @property
    def registers(self) -> dict:
        """
        Get current register values as a dictionary.

        Returns:
            Dictionary with keys v0-vf, i, pc, sp, dt, st, awaiting_key
        """
        regs = {f"v{n:x}": value for n, value in enumerate(self.state.v)}
        regs.update(
            i=self.state.i,
            pc=self.state.pc,
            sp=self.state.sp,
            dt=self.state.delay_timer,
            st=self.state.sound_timer,
            awaiting_key=self.state.awaiting_key,
        )
        return regs

    # ========================================
    # Reset
    # ========================================

    def reset(self) -> None:
        """Clear registers, stack and timers; PC back to $200."""
        self.state = CPUState()

    # ========================================
    # Main Execution Loop
    # ========================================

    def fetch(self) -> int:
        """
        Read the big-endian instruction word at PC.

        Raises:
            MemoryAccessError: If PC or PC+1 is outside memory
        """
        try:
            return self.memory.read_word(self.pc)
        except MemoryAccessError as e:
            raise MemoryAccessError(e.address, pc=self.pc) from e

    def execute_instruction(self) -> bool:
        """
        Execute one instruction, or poll the keypad while FX0A is waiting.

        Timers are not touched; see tick_timers() and cycle().

        Returns:
            False if the on_instruction hook stopped execution, else True

        Raises:
            ExecutionError: On any fatal fault (decode, stack, memory, key)
        """
        if self.state.awaiting_key:
            self._poll_key()
            return True

        pc = self.pc
        word = self.fetch()

        if self.on_instruction and not self.on_instruction(pc, word):
            return False

        instruction = decode(word)
        try:
            self.execute(instruction)
        except MemoryAccessError as e:
            if e.pc is not None:
                raise
            raise MemoryAccessError(e.address, pc=pc, opcode=word) from e
        return True

    def tick_timers(self) -> None:
        """Decrement delay and sound timers by one if nonzero."""
        if self.state.delay_timer > 0:
            self.state.delay_timer -= 1
        if self.state.sound_timer > 0:
            self.state.sound_timer -= 1

    def cycle(self) -> bool:
        """
        Run one full cycle: one instruction, then one timer tick.

        Returns:
            False if the on_instruction hook stopped execution (timers are
            then left untouched), else True
        """
        if not self.execute_instruction():
            return False
        self.tick_timers()
        return True

    # ========================================
    # ALU Helpers
    # ========================================

    @staticmethod
    def _sub8(a: int, b: int) -> tuple[int, int]:
        """Subtract 8-bit values, returning (result, flag). Flag is 1 when no borrow."""
        return (a - b) & 0xFF, 1 if a >= b else 0

    def _skip_if(self, condition: bool) -> None:
        self.pc += 4 if condition else 2

    def _key_operand(self, instruction: Instruction) -> int:
        key = self.state.v[instruction.x]
        if key >= NUM_KEYS:
            raise InvalidKeyError(key, pc=self.pc, opcode=instruction.opcode)
        return key

    # ========================================
    # Instruction Execution
    # ========================================

    def execute(self, instruction: Instruction) -> None:
        """
        Execute a decoded instruction at the current PC.

        Args:
            instruction: Output of decode()

        Raises:
            DecodeError: If instruction.op is Op.UNKNOWN
            StackOverflowError, StackUnderflowError: On CALL/RET misuse
            MemoryAccessError: If I-relative access leaves memory
            InvalidKeyError: If SKP/SKNP reference a key above $F
        """
        v = self.state.v
        x = instruction.x
        y = instruction.y

        match instruction.op:
            # ============================================
            # Control Flow
            # ============================================
            case Op.CLS:
                self.display.clear()
                self.pc += 2
            case Op.RET:
                if self.state.sp == 0:
                    raise StackUnderflowError(pc=self.pc, opcode=instruction.opcode)
                self.state.sp -= 1
                self.pc = self.state.stack[self.state.sp]
            case Op.JP:
                self.pc = instruction.nnn
            case Op.CALL:
                if self.state.sp >= STACK_DEPTH:
                    raise StackOverflowError(pc=self.pc, opcode=instruction.opcode)
                self.state.stack[self.state.sp] = self.pc + 2
                self.state.sp += 1
                self.pc = instruction.nnn
            case Op.JP_V0:
                self.pc = instruction.nnn + v[0]

            # ============================================
            # Conditional Skips
            # ============================================
            case Op.SE_IMM:
                self._skip_if(v[x] == instruction.nn)
            case Op.SNE_IMM:
                self._skip_if(v[x] != instruction.nn)
            case Op.SE_REG:
                self._skip_if(v[x] == v[y])
            case Op.SNE_REG:
                self._skip_if(v[x] != v[y])
            case Op.SKP:
                self._skip_if(self.keypad.is_pressed(self._key_operand(instruction)))
            case Op.SKNP:
                self._skip_if(not self.keypad.is_pressed(self._key_operand(instruction)))

            # ============================================
            # Register Immediate
            # ============================================
            case Op.LD_IMM:
                v[x] = instruction.nn
                self.pc += 2
            case Op.ADD_IMM:
                # No flag update
                v[x] = (v[x] + instruction.nn) & 0xFF
                self.pc += 2

            # ============================================
            # Register-Register ALU (family 8)
            # ============================================
            # With X = F the last write wins: the flag for ADD/SUB/SUBN,
            # the shifted value for SHR/SHL
            case Op.LD_REG:
                v[x] = v[y]
                self.pc += 2
            case Op.OR:
                v[x] |= v[y]
                self.pc += 2
            case Op.AND:
                v[x] &= v[y]
                self.pc += 2
            case Op.XOR:
                v[x] ^= v[y]
                self.pc += 2
            case Op.ADD_REG:
                total = v[x] + v[y]
                v[x] = total & 0xFF
                v[FLAG] = 1 if total > 0xFF else 0
                self.pc += 2
            case Op.SUB:
                v[x], v[FLAG] = self._sub8(v[x], v[y])
                self.pc += 2
            case Op.SUBN:
                v[x], v[FLAG] = self._sub8(v[y], v[x])
                self.pc += 2
            case Op.SHR:
                value = v[x]
                v[FLAG] = value & 0x01
                v[x] = value >> 1
                self.pc += 2
            case Op.SHL:
                value = v[x]
                v[FLAG] = (value >> 7) & 0x01
                v[x] = (value << 1) & 0xFF
                self.pc += 2

            # ============================================
            # Index Register
            # ============================================
            case Op.LD_I:
                self.i = instruction.nnn
                self.pc += 2
            case Op.ADD_I:
                self.i = self.state.i + v[x]
                self.pc += 2
            case Op.LD_FONT:
                self.i = Memory.font_address(v[x])
                self.pc += 2

            # ============================================
            # Random, Graphics
            # ============================================
            case Op.RND:
                v[x] = (self.random_byte() & 0xFF) & instruction.nn
                self.pc += 2
            case Op.DRW:
                sprite = self.memory.read_bytes(self.state.i, instruction.n)
                collision = self.display.draw_sprite(
                    v[x], v[y], sprite, wrap=self.wrap_sprites
                )
                v[FLAG] = 1 if collision else 0
                self.pc += 2

            # ============================================
            # Timers and Keys
            # ============================================
            case Op.LD_VX_DT:
                v[x] = self.state.delay_timer
                self.pc += 2
            case Op.LD_DT_VX:
                self.state.delay_timer = v[x]
                self.pc += 2
            case Op.LD_ST_VX:
                self.state.sound_timer = v[x]
                self.pc += 2
            case Op.LD_VX_KEY:
                self.state.awaiting_key = True
                self.state.key_register = x
                if not self._poll_key():
                    logger.debug(f"Waiting for key into V{x:X} at ${self.pc:04X}")

            # ============================================
            # Memory Transfers
            # ============================================
            case Op.LD_BCD:
                value = v[x]
                self.memory.write_bytes(
                    self.state.i, (value // 100, (value // 10) % 10, value % 10)
                )
                self.pc += 2
            case Op.LD_MEM_REGS:
                self.memory.write_bytes(self.state.i, v[:x + 1])
                self.pc += 2
            case Op.LD_REGS_MEM:
                values = self.memory.read_bytes(self.state.i, x + 1)
                v[:x + 1] = list(values)
                self.pc += 2

            case Op.UNKNOWN:
                raise DecodeError(instruction.opcode, pc=self.pc)

    def _poll_key(self) -> bool:
        """Complete a pending FX0A if any key is down, else stay suspended."""
        key = self.keypad.first_pressed()
        if key is None:
            return False

        self.state.v[self.state.key_register] = key
        self.state.awaiting_key = False
        self.pc += 2
        logger.debug(f"Key {key:X} received into V{self.state.key_register:X}")
        return True
