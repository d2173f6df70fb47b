"""EDI row classification and file reading."""
