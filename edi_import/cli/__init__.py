"""Command line interface (`python -m edi_import.cli`, `edi-import`)."""
