"""HapSNPeval: score reconstructed haplotypes against true haplotypes in an MSA.

Most users should use the CLI:

    hapsnpeval -p true_prefix alignment.fa

"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "1.0.0"
