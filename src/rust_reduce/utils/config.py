"""
Configuration constants to replace magic numbers throughout rust-reduce
"""

import os
import tempfile

# Parser configuration constants (cache under temp dir to avoid cluttering project root)
DEFAULT_PARSER_CACHE_FILE = os.path.join(tempfile.gettempdir(), "rust_reduce_parser.cache")

# Module resolution constants
MODULE_FILE_EXTENSION = ".rs"
MOD_RS_FILE_NAMES = ("mod.rs", "lib.rs", "main.rs")
MOD_RS_FILE = "mod.rs"
PATH_ATTRIBUTE = "path"

# Persisted state
BACKUP_SUFFIX = ".orig"
MINIMISED_SUFFIX = ".min"

# Block bodies
EMPTY_BLOCK = "{}"
PLACEHOLDER_STATEMENT = "unimplemented!()"
PLACEHOLDER_BLOCK = "{ " + PLACEHOLDER_STATEMENT + " }"

# Privatiser: struct fields and impl items stop answering past this level
LEAF_LEVEL_LIMIT = 5

# Entry point discovery (relative to the project root)
BIN_ENTRY_POINT = os.path.join("src", "main.rs")
LIB_ENTRY_POINT = os.path.join("src", "lib.rs")

# External tools
CARGO_FMT_COMMAND = ("cargo", "fmt")
RUSTFMT_COMMAND = ("rustfmt",)

# File encoding constants
DEFAULT_FILE_ENCODING = "utf-8"

# Environment variables
ENV_LOG_LEVEL = "RUST_REDUCE_LOG"
ENV_COLOR = "RUST_REDUCE_COLOR"
DEFAULT_LOG_LEVEL = "INFO"
