"""
Revenue Kernel

Domain records, value parsing, typed errors and persistence plumbing for the
temporal revenue allocation and segmentation engine:
- Immutable estimate/account snapshots
- Tolerant coercion of messy imported prices and dates
- Structured JSON logging
- Read-only snapshot selectors over the CRM database
"""

__version__ = "0.1.0"
