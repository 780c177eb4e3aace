# outlook_mmdf
# -----------------------------------------------------------------------------
# Export an Outlook folder into monthly, gzip-compressed MMDF archives.
# -----------------------------------------------------------------------------

__version__ = "1.0.0"
