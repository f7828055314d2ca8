#!/usr/bin/env python3
"""
Hack Assembler

Usage: python assemble.py <infile> [outfile=<infile>.hack]

Assembly language syntax:
    // comment
    (LABEL)
    @value
    dest=comp;jump

Instructions:
    A-instruction:  @123        Numeric address (0-32767)
                    @symbol     Label, predefined symbol or variable
    C-instruction:  dest=comp;jump  (dest= and ;jump are optional)

Symbols:
    R0-R15          RAM addresses 0-15
    SP, LCL, ARG, THIS, THAT
                    Aliases for R0-R4
    SCREEN, KBD     Memory-mapped I/O (16384, 24576)
    (LABEL)         Address of the next instruction
    other           Variable, allocated from RAM address 16 on first use

Symbol names may use letters, digits (not first), '.', '$' and '_'.
"""

import sys
import re
from typing import Any, Iterator, List, Tuple

from executable import (
    Executable, AInstruction, CInstruction, EncodingError, disassemble,
)
from symbols import SymbolTable, SymbolError

OUTPUT_SUFFIX = '.hack'
COMMENT = '//'

SYMBOL = r'[A-Za-z_.$][A-Za-z0-9_.$]*'

LABEL_RE = re.compile(r'\((' + SYMBOL + r')\)')
ADDRESS_RE = re.compile(r'@([0-9]+)')
VARIABLE_RE = re.compile(r'@(' + SYMBOL + r')')
COMPUTE_RE = re.compile(
    r'(?:(?P<dest>[A-Za-z]+)=)?(?P<comp>[A-Za-z0-9+\-!&|]+)(?:;(?P<jump>\w+))?'
)


class AssemblerError(Exception):
    """Assembler error with line information."""
    def __init__(self, message: str, line_num: int = 0, line: str = ""):
        self.message = message
        self.line_num = line_num
        self.line = line
        super().__init__(f"Line {line_num}: {message}\n  {line}")


class AsmSyntaxError(AssemblerError):
    """Line does not have the shape of any instruction."""


class AsmSemanticError(AssemblerError):
    """Well-formed line that cannot be encoded."""
    def __init__(self, message: str, line_num: int = 0, line: str = "",
                 token: str = "", category: str = ""):
        self.token = token
        self.category = category
        super().__init__(message, line_num, line)


def iter_lines(source: str) -> Iterator[Tuple[int, str]]:
    """Yield (line_num, text) for each line holding an instruction or label."""
    for line_num, line in enumerate(source.splitlines(), 1):
        line = line.split(COMMENT, 1)[0].strip()
        if line:
            yield line_num, line


def classify(text: str) -> Tuple[str, Any]:
    """Classify a stripped line, return (kind, value).

    Kinds are tried in order: label, address, symbol, compute. Anything else
    is 'malformed'.
    """
    if text.startswith('('):
        m = LABEL_RE.fullmatch(text)
        if m:
            return ('label', m.group(1))
        return ('malformed', text)

    if text.startswith('@'):
        m = ADDRESS_RE.fullmatch(text)
        if m:
            return ('address', int(m.group(1)))
        m = VARIABLE_RE.fullmatch(text)
        if m:
            return ('symbol', m.group(1))
        return ('malformed', text)

    # Whitespace inside a C-instruction carries no meaning
    m = COMPUTE_RE.fullmatch(''.join(text.split()))
    if m:
        return ('compute', (m.group('dest') or '', m.group('comp'), m.group('jump') or ''))

    return ('malformed', text)


class Assembler:
    """Two-pass Hack assembler."""

    def __init__(self):
        self.symbols = SymbolTable()
        self.code: List[Any] = []
        self.warnings: List[Tuple[int, str]] = []
        self.line_num = 0
        self.current_line = ""

    def error(self, message: str):
        """Raise a syntax error for the current line."""
        raise AsmSyntaxError(message, self.line_num, self.current_line)

    def semantic_error(self, message: str, token: str, category: str):
        raise AsmSemanticError(message, self.line_num, self.current_line,
                               token=token, category=category)

    def warn(self, message: str):
        self.warnings.append((self.line_num, message))

    def resolve_labels(self, lines: List[Tuple[int, str]]):
        """First pass: bind every (LABEL) to the address of the next instruction."""
        counter = 0
        for line_num, line in lines:
            self.line_num, self.current_line = line_num, line
            kind, value = classify(line)
            if kind != 'label':
                counter += 1
                continue

            try:
                redefined = self.symbols.define_label(value, counter)
            except SymbolError as e:
                self.semantic_error(str(e), e.name, 'symbol')
            if redefined:
                self.warn(f"Label redefined: {value} now points to {counter}")

    def assemble_address(self, address: int) -> AInstruction:
        try:
            return AInstruction(address)
        except EncodingError as e:
            self.semantic_error(f"Address out of range (0-32767): {address}", e.token, e.category)

    def assemble_symbol(self, name: str) -> AInstruction:
        address = self.symbols.resolve(name)
        try:
            return AInstruction(address)
        except EncodingError:
            self.semantic_error(f"Address of {name} out of range (0-32767): {address}", name, 'address')

    def assemble_compute(self, dest: str, comp: str, jump: str) -> CInstruction:
        instr = CInstruction(dest, comp, jump)
        try:
            instr.encode()
        except EncodingError as e:
            self.semantic_error(str(e), e.token, e.category)
        return instr

    def assemble_line(self, line: str):
        """Second pass: encode one line. Labels emit nothing."""
        kind, value = classify(line)

        if kind == 'label':
            return
        elif kind == 'address':
            self.code.append(self.assemble_address(value))
        elif kind == 'symbol':
            self.code.append(self.assemble_symbol(value))
        elif kind == 'compute':
            self.code.append(self.assemble_compute(*value))
        else:
            self.error(f"Unrecognized instruction: {value}")

    def assemble(self, source: str) -> Executable:
        """Assemble source code into an executable."""
        self.symbols = SymbolTable()
        self.code = []
        self.warnings = []

        lines = list(iter_lines(source))
        self.resolve_labels(lines)

        for line_num, line in lines:
            self.line_num, self.current_line = line_num, line
            self.assemble_line(line)

        return Executable(code=self.code)


def main(argv=None):
    import argparse

    parser = argparse.ArgumentParser(description='Hack Assembler')
    parser.add_argument('infile', help='Input assembly file')
    parser.add_argument('outfile', nargs='?', default=None,
                        help=f'Output file (default: <infile>{OUTPUT_SUFFIX})')
    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose output')
    parser.add_argument('--dump-symbols', action='store_true',
                        help='Print label and variable addresses after assembly')
    parser.add_argument('--disassemble', '-d', action='store_true',
                        help='Treat infile as .hack output and print its listing')

    args = parser.parse_args(argv)

    # Read source file
    try:
        with open(args.infile, 'r', encoding='utf-8-sig') as f:
            source = f.read()
    except FileNotFoundError:
        print(f"Error: File not found: {args.infile}", file=sys.stderr)
        return 1
    except (OSError, UnicodeError) as e:
        print(f"Error reading {args.infile}: {e}", file=sys.stderr)
        return 1

    if args.disassemble:
        try:
            exe = Executable.decode(source)
        except ValueError as e:
            print(f"Disassembler error: {e}", file=sys.stderr)
            return 1
        print(disassemble(exe))
        return 0

    # Assemble
    assembler = Assembler()
    try:
        exe = assembler.assemble(source)
    except AssemblerError as e:
        print(f"Assembler error: {e}", file=sys.stderr)
        return 1

    for line_num, message in assembler.warnings:
        print(f"Warning: line {line_num}: {message}", file=sys.stderr)

    if args.verbose:
        print(f"Assembled {len(exe)} instructions")
        print(f"Symbols: {len(assembler.symbols)}")
        print(disassemble(exe))

    if args.dump_symbols:
        for name, addr in assembler.symbols.user_symbols().items():
            print(f"{name}: {addr}")

    if not args.outfile:
        args.outfile = args.infile + OUTPUT_SUFFIX

    # Write output
    try:
        with open(args.outfile, 'w', encoding='utf-8', newline='\n') as f:
            f.write(exe.encode())
        print(f"Output written to {args.outfile}")
    except OSError as e:
        print(f"Error writing output: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
