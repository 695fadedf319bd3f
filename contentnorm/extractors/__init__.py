"""Core sub-package: date parsing, format detection, metadata resolution,
sanitization and splitting.  Modules here take parsed trees and return
derived values; none of them perform I/O."""
