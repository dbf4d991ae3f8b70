# sodavm

`sodavm` runs bytecode for a small stack machine. A program is a byte string
of opcodes and their inline operands. It runs against a byte-addressed heap
and can read from and write to a simple character device.

## What the machine provides

- A value stack of 32-bit signed cells, 1,048,576 cells deep.
- A call stack of 512 return addresses.
- Eight general-purpose registers.
- Typed arithmetic, bitwise and shift instructions. There are unsigned and
  signed variants for 8-, 16- and 32-bit values, and the arithmetic wraps the
  way fixed-width integers do.
- Absolute and relative jumps, conditional jumps, calls and returns.
- Typed loads from the code segment, and typed loads and stores on the heap.
  Multi-byte values are little-endian.
- An I/O device, opened as class `0`. Its functions are numbered:
  - `0` put a zero-terminated string from the code segment
  - `1` put an integer in decimal
  - `2` put a character
  - `3` put formatted text using `%d`, `%c`, `%s` and `%%`
  - `4` read input into the heap
  - `5` test for end of input

## Installation

```
pip install .
```

## Usage

```python
from sodavm.machine import Machine, evaluate
from sodavm.opcodes import Opcode

# push 2, push 3, add as 32-bit signed, halt returning the top of the stack
code = bytes([Opcode.PUSH2, Opcode.PUSH3, Opcode.ADDI, Opcode.HALTR])
print(evaluate(code, bytearray(64)))   # (5, '')
```

`evaluate(code, heap, input_values)` runs the program and returns a pair: the
program's result and the text it wrote to the I/O device. The result is:

- `0` for `HALT`.
- The top of the stack for `HALTR`.

The heap may be a `bytearray`, which is used in place, a size in bytes, bytes
to copy, or `None` for an empty heap. Input is an iterable of character codes
and ends at its last item or at the first `-1`.

### Calling the I/O device

`INVOKE` takes the function number from the top of the stack and the device
class from the cell below it. The function's arguments lie beneath those, and
its return value goes to general register 0.

```python
code = bytes([
    Opcode.PUSH0, Opcode.OPEN,            # open device class 0
    Opcode.PUSHUC, ord("h"),              # argument: the character
    Opcode.PUSH0, Opcode.PUSH2,           # class 0, function 2 (put a character)
    Opcode.INVOKE,
    Opcode.HALT,
])
print(evaluate(code))   # (0, 'h')
```

### Errors

The other ways a program can stop raise an exception from `sodavm.errors`.
All of them derive from `VMError`, and each carries a numeric `status`.

| Cause | Exception |
| --- | --- |
| Running or jumping outside the code segment, or executing `TRAP` | `Trap`, with the faulting `address` |
| A `PANIC` check on a non-zero value, or `FORCE_PANIC` | `Panic` |
| A byte that is not a known opcode | `IllegalInstruction`, with `opcode` and `address` |
| An unknown device class passed to `OPEN` | `OpenError` |
| An unknown device class or function passed to `INVOKE` | `InvokeError` |

Division or remainder by zero raises `ZeroDivisionError`. A stack, call-stack
or memory access out of range raises `IndexError`.

### Stepping through a program

To inspect the machine, create a `Machine` yourself. Advance it one
instruction at a time with `step()`, which returns the result once the
program has halted and `None` before that. Or run it to the end with `run()`.

```python
machine = Machine(code, bytearray(64), [ord(c) for c in "hi"])
result = machine.run()
machine.device.output_values()   # character codes written
machine.device.output_text()     # the same, as text
machine.stack                    # live stack cells, bottom first
machine.registers                # the register file
```

`push()` and `pop()` work on the value stack. `invoke(device_class, function)`
runs a device function directly, with its arguments taken from the stack.

## Modules

- `sodavm.machine`: `Machine` and `evaluate`.
- `sodavm.opcodes`: the `Opcode` and `Register` enumerations and the stack limits.
- `sodavm.types`: `IntKind`, the integer kinds, with wrapping, encoding and decoding.
- `sodavm.arith`: the arithmetic, bitwise and comparison semantics.
- `sodavm.memory`: typed loads and stores on byte buffers.
- `sodavm.devices`: `IODevice` and `open_device`.
- `sodavm.errors`: the exceptions.

## What it does not do

The package is a library only. It has no command-line program, and it has no
assembler or disassembler: programs must be built as bytes, for example from
the `Opcode` values.