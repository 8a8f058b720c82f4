# When set, malformed drawing operators raise PDFDomValueError instead of
# being skipped.
STRICT = False
