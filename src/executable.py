"""
Instruction encoding/decoding library for the Hack machine.

Every instruction is a 16-bit word, written as 16 '0'/'1' characters.

A-instruction layout:
  15     0          Opcode bit
  14-0   ADDRESS    Unsigned 15-bit value loaded into A

C-instruction layout:
  15-13  111        Opcode bits
  12-6   COMP       a-bit + 6 ALU control bits
  5-3    DEST       Store result in A, D, M
  2-0    JUMP       Jump condition on the ALU output

Executable text format (.hack):
  One instruction per line, each line terminated by '\\n', no blank lines.
"""

from dataclasses import dataclass
from typing import List, Union

from symbols import MAX_ADDRESS

WORD_BITS = 16
C_PREFIX = '111'

# Computation field (a-bit first)
COMP_CODES = {
    '0':   '0101010',
    '1':   '0111111',
    '-1':  '0111010',
    'D':   '0001100',
    'A':   '0110000',
    '!D':  '0001101',
    '!A':  '0110001',
    '-D':  '0001111',
    '-A':  '0110011',
    'D+1': '0011111',
    'A+1': '0110111',
    'D-1': '0001110',
    'A-1': '0110010',
    'D+A': '0000010',
    'D-A': '0010011',
    'A-D': '0000111',
    'D&A': '0000000',
    'D|A': '0010101',
    'M':   '1110000',
    '!M':  '1110001',
    '-M':  '1110011',
    'M+1': '1110111',
    'M-1': '1110010',
    'D+M': '1000010',
    'D-M': '1010011',
    'M-D': '1000111',
    'D&M': '1000000',
    'D|M': '1010101',
}

DEST_CODES = {
    '':    '000',
    'M':   '001',
    'D':   '010',
    'MD':  '011',
    'A':   '100',
    'AM':  '101',
    'AD':  '110',
    'AMD': '111',
}

JUMP_CODES = {
    '':    '000',
    'JGT': '001',
    'JEQ': '010',
    'JGE': '011',
    'JLT': '100',
    'JNE': '101',
    'JLE': '110',
    'JMP': '111',
}

COMP_NAMES = {v: k for k, v in COMP_CODES.items()}
DEST_NAMES = {v: k for k, v in DEST_CODES.items()}
JUMP_NAMES = {v: k for k, v in JUMP_CODES.items()}


class EncodingError(ValueError):
    """A field value that has no encoding."""
    def __init__(self, category: str, token: str):
        self.category = category
        self.token = token
        super().__init__(f"Invalid {category}: {token!r}")


def check_word(word: str):
    if len(word) != WORD_BITS or set(word) - {'0', '1'}:
        raise ValueError(f"Not a {WORD_BITS}-bit binary word: {word!r}")


@dataclass(frozen=True)
class AInstruction:
    """Load an address into the A register."""
    address: int

    def __post_init__(self):
        if not 0 <= self.address <= MAX_ADDRESS:
            raise EncodingError('address', str(self.address))

    def encode(self) -> str:
        return f"0{self.address:015b}"

    @classmethod
    def decode(cls, word: str) -> 'AInstruction':
        check_word(word)
        if word[0] != '0':
            raise ValueError(f"Not an A-instruction: {word}")
        return cls(int(word[1:], 2))

    def __str__(self) -> str:
        return f"@{self.address}"


@dataclass(frozen=True)
class CInstruction:
    """dest=comp;jump"""
    dest: str
    comp: str
    jump: str

    def encode(self) -> str:
        """Encode to a 16-character word. Raises EncodingError on unknown mnemonics."""
        comp = COMP_CODES.get(self.comp)
        if comp is None:
            raise EncodingError('comp', self.comp)
        dest = DEST_CODES.get(self.dest)
        if dest is None:
            raise EncodingError('dest', self.dest)
        jump = JUMP_CODES.get(self.jump)
        if jump is None:
            raise EncodingError('jump', self.jump)

        return C_PREFIX + comp + dest + jump

    @classmethod
    def decode(cls, word: str) -> 'CInstruction':
        check_word(word)
        if not word.startswith(C_PREFIX):
            raise ValueError(f"Not a C-instruction: {word}")

        comp = COMP_NAMES.get(word[3:10])
        if comp is None:
            raise ValueError(f"Unknown comp bits {word[3:10]} in {word}")

        # dest and jump tables cover every 3-bit pattern
        return cls(DEST_NAMES[word[10:13]], comp, JUMP_NAMES[word[13:16]])

    def __str__(self) -> str:
        text = self.comp
        if self.dest:
            text = f"{self.dest}={text}"
        if self.jump:
            text = f"{text};{self.jump}"
        return text


Instruction = Union[AInstruction, CInstruction]


def decode_word(word: str) -> Instruction:
    """Decode one 16-bit word to the matching instruction."""
    check_word(word)
    if word[0] == '0':
        return AInstruction.decode(word)
    return CInstruction.decode(word)


@dataclass
class Executable:
    """Represents an assembled program."""
    code: List[Instruction] = None

    def __post_init__(self):
        if self.code is None:
            self.code = []

    def __len__(self) -> int:
        return len(self.code)

    def words(self) -> List[str]:
        return [instr.encode() for instr in self.code]

    def encode(self) -> str:
        """Encode executable to .hack text."""
        return ''.join(word + '\n' for word in self.words())

    @classmethod
    def decode(cls, text: str) -> 'Executable':
        """Decode .hack text to an executable."""
        exe = cls()
        for line_num, line in enumerate(text.splitlines(), 1):
            word = line.strip()
            try:
                exe.code.append(decode_word(word))
            except ValueError as e:
                raise ValueError(f"Line {line_num}: {e}") from e
        return exe


def disassemble(exe: Executable) -> str:
    """Disassemble executable to human-readable format."""
    lines = [
        f"// Code length: {len(exe.code)} instructions",
        "",
    ]

    for i, instr in enumerate(exe.code):
        lines.append(f"0x{i:04X}: {instr.encode()}  {instr}")

    return '\n'.join(lines)
