"""
Symbol table for the Hack assembler.

Holds the predefined symbols, the labels collected by the first pass and the
variables allocated on first use during the second pass.

Address map:
  0-15      R0..R15 (SP, LCL, ARG, THIS, THAT alias R0..R4)
  16+       Variables, allocated in first-use order
  16384     SCREEN
  24576     KBD
"""

from typing import Dict, Optional

# Highest address an A-instruction can carry (15 bits)
MAX_ADDRESS = 0x7FFF

# First RAM address handed out to variables
VARIABLE_BASE = 16

PREDEFINED_SYMBOLS = {
    **{f'R{i}': i for i in range(16)},
    'SCREEN': 0x4000,
    'KBD':    0x6000,
    'SP':     0,
    'LCL':    1,
    'ARG':    2,
    'THIS':   3,
    'THAT':   4,
}


class SymbolError(ValueError):
    """Raised when a symbol cannot be bound."""
    def __init__(self, message: str, name: str):
        self.name = name
        super().__init__(message)


class SymbolTable:
    """Name -> address mapping. Grows only, never removes entries."""

    def __init__(self):
        self.symbols: Dict[str, int] = PREDEFINED_SYMBOLS.copy()
        self.labels: Dict[str, int] = {}
        self.variables: Dict[str, int] = {}
        self.next_variable = VARIABLE_BASE

    def __contains__(self, name: str) -> bool:
        return name in self.symbols

    def __getitem__(self, name: str) -> int:
        return self.symbols[name]

    def __len__(self) -> int:
        return len(self.symbols)

    def is_predefined(self, name: str) -> bool:
        return name in PREDEFINED_SYMBOLS

    def lookup(self, name: str) -> Optional[int]:
        """Return the address bound to name, or None if it is unknown."""
        return self.symbols.get(name)

    def define_label(self, name: str, address: int) -> bool:
        """Bind a label to an instruction address.

        Returns True if the label was already declared; the new address
        replaces the old one.
        """
        if self.is_predefined(name):
            raise SymbolError(f"Cannot redefine predefined symbol: {name}", name)
        if name in self.variables:
            raise SymbolError(f"Symbol already bound to a variable: {name}", name)
        if address < 0:
            raise SymbolError(f"Negative address for label {name}: {address}", name)

        redefined = name in self.labels
        self.labels[name] = address
        self.symbols[name] = address
        return redefined

    def allocate_variable(self, name: str) -> int:
        """Give name the next free variable address."""
        if name in self.symbols:
            raise SymbolError(f"Symbol already bound: {name}", name)

        address = self.next_variable
        self.next_variable += 1
        self.variables[name] = address
        self.symbols[name] = address
        return address

    def resolve(self, name: str) -> int:
        """Return the address of name, allocating a variable on first use."""
        address = self.lookup(name)
        if address is None:
            address = self.allocate_variable(name)
        return address

    def user_symbols(self) -> Dict[str, int]:
        """Labels and variables, ordered by address."""
        merged = {**self.labels, **self.variables}
        return dict(sorted(merged.items(), key=lambda kv: (kv[1], kv[0])))
