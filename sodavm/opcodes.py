"""Instruction set, register indices and machine limits."""

from __future__ import annotations

from enum import IntEnum

STACK_CELLS = 1048576
CALLSTACK_CELLS = 512
GENERAL_REGISTERS = 8


class Register(IntEnum):
    """Indices into the register file."""

    PC = 0
    SP = 1
    CS = 2
    HSZ = 3
    SSZ = 4
    CB = 5
    IA = 6
    CLP = 7
    LOP = 8
    GPR0 = 9


REGISTER_COUNT = Register.GPR0 + GENERAL_REGISTERS


class Opcode(IntEnum):
    """One-byte instruction codes."""

    HALT = 0
    PUSHUC = 1
    PUSHUS = 2
    PUSHUI = 3
    PUSHC = 4
    PUSHS = 5
    PUSHI = 6
    PUSHL = 7
    ADDUC = 8
    ADDUS = 9
    ADDUI = 10
    ADDC = 11
    ADDS = 12
    ADDI = 13
    ADDL = 14
    SUBUC = 15
    SUBUS = 16
    SUBUI = 17
    SUBC = 18
    SUBS = 19
    SUBI = 20
    SUBL = 21
    MULUC = 22
    MULUS = 23
    MULUI = 24
    MULC = 25
    MULS = 26
    MULI = 27
    MULL = 28
    DIVUC = 29
    DIVUS = 30
    DIVUI = 31
    DIVC = 32
    DIVS = 33
    DIVI = 34
    DIVL = 35
    LDCUC = 36
    LDCUS = 37
    LDCUI = 38
    LDCC = 39
    LDCS = 40
    LDCI = 41
    LDCL = 42
    JGT = 43
    JLS = 44
    JEQ = 45
    JNE = 46
    JLE = 47
    JGE = 48
    JZ = 49
    JNZ = 50
    JMP = 51
    NOP = 52
    LSHUC = 53
    LSHUS = 54
    LSHUI = 55
    LSHC = 56
    LSHS = 57
    LSHI = 58
    LSHL = 59
    RSHUC = 60
    RSHUS = 61
    RSHUI = 62
    RSHC = 63
    RSHS = 64
    RSHI = 65
    RSHL = 66
    ANDUC = 67
    ANDUS = 68
    ANDUI = 69
    ANDC = 70
    ANDS = 71
    ANDI = 72
    ANDL = 73
    ORUC = 74
    ORUS = 75
    ORUI = 76
    ORC = 77
    ORS = 78
    ORI = 79
    ORL = 80
    NOTUC = 81
    NOTUS = 82
    NOTUI = 83
    NOTC = 84
    NOTS = 85
    NOTI = 86
    NOTL = 87
    XORUC = 88
    XORUS = 89
    XORUI = 90
    XORC = 91
    XORS = 92
    XORI = 93
    XORL = 94
    REMUC = 95
    REMUS = 96
    REMUI = 97
    REMC = 98
    REMS = 99
    REMI = 100
    REML = 101
    SWAP = 102
    POP = 103
    STHUC = 104
    STHUS = 105
    STHUI = 106
    STHC = 107
    STHS = 108
    STHI = 109
    STHL = 110
    LDHUC = 111
    LDHUS = 112
    LDHUI = 113
    LDHC = 114
    LDHS = 115
    LDHI = 116
    LDHL = 117
    DUP = 118
    PANIC = 119
    OVER = 120
    STR0 = 121
    STR1 = 122
    STR2 = 123
    STR3 = 124
    STR4 = 125
    STR5 = 126
    STR6 = 127
    STR7 = 128
    LDR0 = 129
    LDR1 = 130
    LDR2 = 131
    LDR3 = 132
    LDR4 = 133
    LDR5 = 134
    LDR6 = 135
    LDR7 = 136
    COPY = 137
    PCOPY = 138
    POPA = 139
    STS = 140
    RBS = 141
    RBE = 142
    HALTR = 143
    PUSHSP = 144
    ALDHUC = 145
    ALDHUS = 146
    ALDHUI = 147
    ALDHC = 148
    ALDHS = 149
    ALDHI = 150
    ALDHL = 151
    ASTHUC = 152
    ASTHUS = 153
    ASTHUI = 154
    ASTHC = 155
    ASTHS = 156
    ASTHI = 157
    ASTHL = 158
    ALDCUC = 159
    ALDCUS = 160
    ALDCUI = 161
    ALDCC = 162
    ALDCS = 163
    ALDCI = 164
    ALDCL = 165
    INCSP = 166
    DECSP = 167
    RJGT = 168
    RJLS = 169
    RJEQ = 170
    RJNE = 171
    RJLE = 172
    RJGE = 173
    RJZ = 174
    RJNZ = 175
    RJMP = 176
    PUSHPC = 177
    PUSHCS = 178
    FORCE_PANIC = 179
    CGT = 180
    CLS = 181
    CEQ = 182
    CNE = 183
    CLE = 184
    CGE = 185
    CZ = 186
    CNZ = 187
    CALL = 188
    CLGT = 189
    CLLS = 190
    CLEQ = 191
    CLNE = 192
    CLLE = 193
    CLGE = 194
    CLZ = 195
    CLNZ = 196
    RET = 197
    RCALL = 198
    RCLGT = 199
    RCLLS = 200
    RCLEQ = 201
    RCLNE = 202
    RCLLE = 203
    RCLGE = 204
    RCLZ = 205
    RCLNZ = 206
    RCBACK = 207
    TRAP = 208
    OPEN = 209
    INVOKE = 210
    # extended instruction set
    PUSHN1 = 211
    PUSH0 = 212
    PUSH1 = 213
    PUSH2 = 214
    PUSH3 = 215
    PUSH4 = 216
    PUSH5 = 217
    PUSH7 = 218

    @classmethod
    def from_byte(cls, value: int) -> "Opcode":
        """Return the opcode for a code byte; raise ValueError if unknown."""
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"unknown opcode {value!r}") from None