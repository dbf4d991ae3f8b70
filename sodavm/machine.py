"""The stack machine: registers, evaluation stack, call stack and dispatch."""

from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from .arith import binary_op, compare, is_binary, is_compare, is_not, not_op
from .devices import DeviceClass, IODevice, open_device
from .errors import IllegalInstruction, InvokeError, Panic, Trap
from .memory import aligned_store, kind_of, load, store
from .opcodes import CALLSTACK_CELLS, REGISTER_COUNT, STACK_CELLS, Opcode, Register
from .types import IntKind

_CELL = IntKind.L

HeapSpec = Union[bytearray, bytes, int, None]
_Handler = Callable[[int], Optional[int]]


@dataclass(frozen=True)
class _Branch:
    relative: bool
    call: bool
    test: Optional[Callable[..., bool]]
    binary: bool


_CONDITIONS: Dict[str, Tuple[Callable[..., bool], bool]] = {
    "GT": (operator.gt, True),
    "LS": (operator.lt, True),
    "EQ": (operator.eq, True),
    "NE": (operator.ne, True),
    "LE": (operator.le, True),
    "GE": (operator.ge, True),
    "Z": (lambda value: value == 0, False),
    "NZ": (lambda value: value != 0, False),
}


def _branch_table() -> Dict[int, _Branch]:
    table: Dict[int, _Branch] = {}
    prefixes = {"J": (False, False), "RJ": (True, False), "CL": (False, True), "RCL": (True, True)}
    for prefix, (relative, call) in prefixes.items():
        for suffix, (test, binary) in _CONDITIONS.items():
            table[Opcode[prefix + suffix]] = _Branch(relative, call, test, binary)
    table[Opcode.JMP] = _Branch(False, False, None, False)
    table[Opcode.RJMP] = _Branch(True, False, None, False)
    table[Opcode.CALL] = _Branch(False, True, None, False)
    table[Opcode.RCALL] = _Branch(True, True, None, False)
    return table


_BRANCHES = _branch_table()

_CONSTANTS = {
    Opcode.PUSHN1: -1,
    Opcode.PUSH0: 0,
    Opcode.PUSH1: 1,
    Opcode.PUSH2: 2,
    Opcode.PUSH3: 3,
    Opcode.PUSH4: 4,
    Opcode.PUSH5: 5,
    Opcode.PUSH7: 7,
}


def _family(prefix: str) -> List[Opcode]:
    return [Opcode[prefix + kind.suffix.upper()] for kind in IntKind]


def _element_layout(opcode: int) -> Tuple[IntKind, int]:
    """Element kind and address divisor of an aligned heap or code access."""
    if opcode == Opcode.ALDHUS:
        return IntKind.UC, 2
    if opcode == Opcode.ASTHL:
        return IntKind.US, 4
    kind = kind_of(opcode)
    return kind, kind.size()


def _element_address(address: int, divisor: int, kind: IntKind) -> int:
    index = abs(address) // divisor
    if address < 0:
        index = -index
    return index * kind.size()


def _as_heap(heap: HeapSpec) -> bytearray:
    if heap is None:
        return bytearray()
    if isinstance(heap, bytearray):
        return heap
    if isinstance(heap, int):
        return bytearray(heap)
    return bytearray(heap)


class Machine:
    """A program loaded with its heap and input, ready to run.

    ``code`` is the code segment; execution starts at address 0. ``heap`` is
    a bytearray used in place, a size in bytes, or bytes to copy.
    """

    def __init__(
        self,
        code: bytes,
        heap: HeapSpec = None,
        input_values: Optional[Iterable[int]] = None,
    ) -> None:
        self.code = bytes(code)
        self.heap = _as_heap(heap)
        self.device = IODevice(input_values)
        self.registers: List[int] = [0] * REGISTER_COUNT
        self.registers[Register.CS] = len(self.code)
        self.registers[Register.HSZ] = len(self.heap)
        self.registers[Register.LOP] = Opcode.NOP
        self._stack: List[int] = [0] * STACK_CELLS
        self._calls: List[int] = []
        self.result: Optional[int] = None
        self._handlers = self._build_handlers()

    # registers and stack views

    @property
    def pc(self) -> int:
        return self.registers[Register.PC]

    @pc.setter
    def pc(self, value: int) -> None:
        self.registers[Register.PC] = value

    @property
    def sp(self) -> int:
        return self.registers[Register.SP]

    @sp.setter
    def sp(self, value: int) -> None:
        self.registers[Register.SP] = value

    @property
    def stack(self) -> List[int]:
        """The live cells of the evaluation stack, bottom first."""
        return self._stack[: max(self.sp, 0)]

    def _index(self, index: int) -> int:
        if not 0 <= index < STACK_CELLS:
            raise IndexError(f"stack cell {index} out of range")
        return index

    def _peek(self, depth: int) -> int:
        return self._stack[self._index(self.sp - depth)]

    def _poke(self, depth: int, value: int) -> None:
        self._stack[self._index(self.sp - depth)] = _CELL.wrap(value)

    def push(self, value: int) -> None:
        """Push a cell onto the evaluation stack."""
        self._stack[self._index(self.sp)] = _CELL.wrap(value)
        self.sp += 1

    def pop(self) -> int:
        """Remove and return the top cell of the evaluation stack."""
        value = self._peek(1)
        self.sp -= 1
        return value

    def _check_target(self, address: int) -> None:
        if address >= self.registers[Register.CS] or address < self.registers[Register.CB]:
            self.registers[Register.IA] = address
            raise Trap(address)

    def _push_return(self, address: int) -> None:
        if len(self._calls) >= CALLSTACK_CELLS:
            raise IndexError("call stack overflow")
        self._calls.append(address)
        self.registers[Register.CLP] = len(self._calls)

    # execution

    def step(self) -> Optional[int]:
        """Execute one instruction.

        Returns the program's result once it halts, otherwise None.
        """
        if self.result is not None:
            return self.result
        pc = self.pc
        self._check_target(pc)
        opcode = self.code[pc]
        self.registers[Register.LOP] = opcode
        handler = self._handlers.get(opcode)
        if handler is None:
            raise IllegalInstruction(opcode, pc)
        self.result = handler(opcode)
        return self.result

    def run(self) -> int:
        """Run until the program halts and return its result."""
        while True:
            result = self.step()
            if result is not None:
                return result

    def _build_handlers(self) -> Dict[int, _Handler]:
        handlers: Dict[int, _Handler] = {
            Opcode.HALT: lambda op: 0,
            Opcode.HALTR: lambda op: self._peek(1),
            Opcode.TRAP: self._trap,
            Opcode.NOP: self._advance,
            Opcode.RBS: self._advance,
            Opcode.RBE: self._advance,
            Opcode.STS: self._sts,
            Opcode.PUSHPC: lambda op: self._push_and_advance(self.pc),
            Opcode.PUSHCS: lambda op: self._push_and_advance(self.registers[Register.CS]),
            Opcode.PUSHSP: lambda op: self._push_and_advance(self.sp),
            Opcode.PANIC: self._panic,
            Opcode.FORCE_PANIC: self._force_panic,
            Opcode.INCSP: self._incsp,
            Opcode.DECSP: self._decsp,
            Opcode.SWAP: self._swap,
            Opcode.POP: self._decsp,
            Opcode.COPY: self._copy,
            Opcode.PCOPY: self._pcopy,
            Opcode.POPA: self._popa,
            Opcode.DUP: lambda op: self._push_and_advance(self._peek(1)),
            Opcode.OVER: lambda op: self._push_and_advance(self._peek(2)),
            Opcode.RET: self._ret,
            Opcode.OPEN: self._open,
            Opcode.INVOKE: self._invoke,
        }
        for opcode in _CONSTANTS:
            handlers[opcode] = self._push_constant
        for opcode in _BRANCHES:
            handlers[opcode] = self._branch
        for number in range(8):
            handlers[Opcode[f"STR{number}"]] = self._store_register
            handlers[Opcode[f"LDR{number}"]] = self._load_register
        for opcode in _family("PUSH"):
            handlers[opcode] = self._push_immediate
        for opcode in _family("LDC"):
            handlers[opcode] = self._load_code
        for opcode in _family("ALDC"):
            handlers[opcode] = self._aligned_load_code
        for opcode in _family("LDH"):
            handlers[opcode] = self._load_heap
        for opcode in _family("ALDH"):
            handlers[opcode] = self._aligned_load_heap
        for opcode in _family("STH"):
            handlers[opcode] = self._store_heap
        for opcode in _family("ASTH"):
            handlers[opcode] = self._aligned_store_heap
        for opcode in Opcode:
            if is_binary(opcode):
                handlers[opcode] = self._binary
            elif is_not(opcode):
                handlers[opcode] = self._not
            elif is_compare(opcode):
                handlers[opcode] = self._compare
        return handlers

    # instruction handlers

    def _advance(self, opcode: int = Opcode.NOP) -> None:
        self.pc += 1

    def _push_and_advance(self, value: int) -> None:
        self.push(value)
        self.pc += 1

    def _trap(self, opcode: int) -> None:
        self.registers[Register.IA] = self.pc
        raise Trap(self.pc)

    def _panic(self, opcode: int) -> None:
        if self._peek(1):
            raise Panic()
        self.sp -= 1
        self.pc += 1

    def _force_panic(self, opcode: int) -> None:
        raise Panic("forced panic")

    def _incsp(self, opcode: int) -> None:
        self.sp += 1
        self.pc += 1

    def _decsp(self, opcode: int) -> None:
        self.sp -= 1
        self.pc += 1

    def _swap(self, opcode: int) -> None:
        top, second = self._peek(1), self._peek(2)
        self._poke(1, second)
        self._poke(2, top)
        self.pc += 1

    def _sts(self, opcode: int) -> None:
        self._stack[self._index(self._peek(1))] = self._peek(2)
        self.sp -= 2
        self.pc += 1

    def _copy(self, opcode: int) -> None:
        self._poke(1, self._stack[self._index(self._peek(1))])
        self.pc += 1

    def _shift_down(self) -> int:
        start = self._peek(1)
        count = self.sp
        if start < 0 or start + 1 + count > STACK_CELLS:
            raise IndexError(f"stack move from cell {start} out of range")
        self._stack[start:start + count] = self._stack[start + 1:start + 1 + count]
        return start

    def _pcopy(self, opcode: int) -> None:
        start = self._shift_down()
        self._poke(2, start)
        self.sp -= 1
        self.pc += 1

    def _popa(self, opcode: int) -> None:
        self._shift_down()
        self.sp -= 2
        self.pc += 1

    def _push_constant(self, opcode: int) -> None:
        self._push_and_advance(_CONSTANTS[opcode])

    def _push_immediate(self, opcode: int) -> None:
        kind = kind_of(opcode)
        value = load(self.code, self.pc + 1, kind)
        self.push(value)
        self.pc += 1 + kind.size()

    def _store_register(self, opcode: int) -> None:
        self.registers[Register.GPR0 + opcode - Opcode.STR0] = self._peek(1)
        self.sp -= 1
        self.pc += 1

    def _load_register(self, opcode: int) -> None:
        self._push_and_advance(self.registers[Register.GPR0 + opcode - Opcode.LDR0])

    def _binary(self, opcode: int) -> None:
        self._poke(2, binary_op(opcode, self._peek(1), self._peek(2)))
        self.sp -= 1
        self.pc += 1

    def _not(self, opcode: int) -> None:
        self._poke(1, not_op(opcode, self._peek(1)))
        self.pc += 1

    def _compare(self, opcode: int) -> None:
        if opcode in (Opcode.CZ, Opcode.CNZ):
            self._poke(1, compare(opcode, self._peek(1)))
        else:
            self._poke(2, compare(opcode, self._peek(1), self._peek(2)))
            self.sp -= 1
        self.pc += 1

    def _load_code(self, opcode: int) -> None:
        address = self._peek(1)
        self._check_target(address)
        self._poke(1, load(self.code, address, kind_of(opcode)))
        self.pc += 1

    def _aligned_element(self, buffer: bytes, opcode: int) -> int:
        # The aligned loads take their address from the cell just above the top.
        kind, divisor = _element_layout(opcode)
        address = self._stack[self._index(self.sp)]
        return load(buffer, _element_address(address, divisor, kind), kind)

    def _aligned_load_code(self, opcode: int) -> None:
        self._check_target(self._peek(1))
        self._poke(1, self._aligned_element(self.code, opcode))
        self.pc += 1

    def _load_heap(self, opcode: int) -> None:
        self._poke(1, load(self.heap, self._peek(1), kind_of(opcode)))
        self.pc += 1

    def _aligned_load_heap(self, opcode: int) -> None:
        self._poke(1, self._aligned_element(self.heap, opcode))
        self.pc += 1

    def _store_heap(self, opcode: int) -> None:
        store(self.heap, self._peek(1), self._peek(2), kind_of(opcode))
        self.sp -= 2
        self.pc += 1

    def _aligned_store_heap(self, opcode: int) -> None:
        kind, divisor = _element_layout(opcode)
        address = _element_address(self._peek(1), divisor, kind)
        aligned_store(self.heap, address, self._peek(2), kind)
        self.sp -= 2
        self.pc += 1

    def _branch(self, opcode: int) -> None:
        branch = _BRANCHES[opcode]
        offset = self._peek(1)
        target = _CELL.wrap(self.pc + offset) if branch.relative else offset
        self._check_target(target)
        if branch.test is None:
            taken, consumed = True, 1
        elif branch.binary:
            taken, consumed = branch.test(self._peek(2), self._peek(3)), 3
        else:
            taken, consumed = branch.test(self._peek(2)), 2
        if taken:
            if branch.call:
                self._push_return(self.pc + 1)
            self.pc = target
        else:
            self.pc += 1
        self.sp -= consumed

    def _ret(self, opcode: int) -> None:
        if not self._calls:
            raise IndexError("return with an empty call stack")
        self.pc = self._calls.pop()
        self.registers[Register.CLP] = len(self._calls)

    def _open(self, opcode: int) -> None:
        open_device(self._peek(1))
        self.sp -= 1
        self.pc += 1

    def _invoke(self, opcode: int) -> None:
        self.sp -= 2
        device_class = self._stack[self._index(self.sp)]
        function = self._stack[self._index(self.sp + 1)]
        self.invoke(device_class, function)
        self.pc += 1

    def invoke(self, device_class: int, function: int) -> None:
        """Run a device function, taking its arguments from the stack.

        The function's return value goes to the first general register.
        Raises InvokeError for an unknown class or function.
        """
        if device_class != DeviceClass.IO:
            raise InvokeError(device_class, function)
        device = self.device
        if function == 0:
            result = device.put_string(self.code, self.pop())
        elif function == 1:
            result = device.put_int(self.pop())
        elif function == 2:
            result = device.put_char(self.pop())
        elif function == 3:
            result = device.put_format(self.code, self.pop(), self.pop)
        elif function == 4:
            result = device.read_into(self.heap, self._peek(2), self._peek(1))
            # The argument cells stay; the cell above the top is decremented.
            slot = self._index(self.sp)
            self._stack[slot] = _CELL.wrap(self._stack[slot] - 2)
        elif function == 5:
            result = device.at_eof()
            self.push(result)
        else:
            raise InvokeError(device_class, function)
        self.registers[Register.GPR0] = _CELL.wrap(result)


def evaluate(
    code: bytes,
    heap: HeapSpec = None,
    input_values: Optional[Iterable[int]] = None,
) -> Tuple[int, str]:
    """Run a program to completion; return its result and its output text."""
    machine = Machine(code, heap, input_values)
    value = machine.run()
    return value, machine.device.output_text()