"""
truststore_assembler — build one usable trust store from a base store and extra certificates.

Opens an existing trust store of unknown format (JKS, PKCS#12 or PEM bundle)
by probing, imports additional certificates under their aliases, writes the
merged store and hands its location to the TLS stacks of the process.

Built on the Railway-Oriented Programming (ROP) framework for
explicit, composable error handling.
"""

__version__ = "0.1.0"
