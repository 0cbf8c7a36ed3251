"""
crlget — CRLSet retrieval and decoding.

Asks the component update service for the current CRLSet, downloads the CRX
package it announces, verifies its digest, and decodes the `crl-set` entry
into a header plus SPKI-hash → revoked-serials mapping.

Built on the Railway-Oriented Programming (ROP) framework for
explicit, composable, functional error handling.
"""

__version__ = "0.1.0"
