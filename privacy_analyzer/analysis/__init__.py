"""Detection engine.

Pure, synchronous analysis functions shared by the CLI and the
extension surface: third-party classification, dangerous pattern
scanning, fingerprinting detection and report aggregation.
"""
