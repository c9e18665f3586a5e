"""
ledgercore.utils
================

Byte/hex/address helpers (`bytes`) and 18-digit fixed-point decimals (`dec`).
Import from the submodules directly; nothing is re-exported here.
"""
