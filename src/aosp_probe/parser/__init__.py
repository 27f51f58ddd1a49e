"""Source-specific parsers for procfs, dumpsys, lshal and native output."""
