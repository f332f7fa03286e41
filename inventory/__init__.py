"""inventory/ -- Asset records, transaction ledgers, and their stores.

Layer rule: inventory/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/ or auth/.
"""
