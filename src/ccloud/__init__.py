"""Confluent Cloud provider core.

Credential resolution, OAuth/STS token management, pagination and error
description shared by every Confluent Cloud resource implementation.
"""

__version__ = "0.1.0"
__author__ = "Platform Engineering Team"
__license__ = "Apache-2.0"
