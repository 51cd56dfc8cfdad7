"""Encoder, decoder and logging configuration."""

from typing import Literal

from dotenv import find_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Determine the environment file path, or None if not found
ENV_FILE = find_dotenv() or None


class EncoderConfig(BaseSettings):
    """Configuration settings for CNF generation."""

    border_mode: Literal["exclude", "clause"] = "exclude"
    """How border compliance is enforced.

    "exclude" (default) never creates variables for illegal placements; "clause" creates them
    and forbids each one with a unary clause.
    """

    forbid_interior_blank: bool = True
    """Whether the blank pattern is forbidden on interior-facing sides. Default: True."""

    amo_encoding: Literal["pairwise", "commander"] = "pairwise"
    """At-most-one encoding for cell and tile uniqueness. Default: "pairwise"."""

    commander_group_size: int = 3
    """Subgroup size for the commander encoding. Default: 3."""

    adjacency_encoding: Literal["direct", "edge_color"] = "direct"
    """Adjacency encoding.

    "direct" (default) forbids every mismatching pair of placements across a shared edge;
    "edge_color" introduces one variable per (internal edge, pattern).
    """

    symmetry_breaking: bool = True
    """Force a corner tile into the top-left cell when the puzzle has no clues. Default: True."""

    header_strategy: Literal["recount", "formula", "patch"] = "recount"
    """How the clause count reaches the header.

    "recount" (default) enumerates the clauses twice; "formula" computes the count from the
    variable layout; "patch" writes a placeholder and seeks back (seekable outputs only, otherwise
    falls back to "recount").
    """

    check_clauses: bool = False
    """Validate every clause while writing (slower). Default: False."""

    write_comments: bool = True
    """Write descriptive "c" comment lines before the header. Default: True."""

    report_interval: int = 10_000_000
    """Interval (in number of clauses written) at which to report progress. Default: 10,000,000."""

    max_workers: int | None = 1
    """Number of worker processes for sharded generation.

    1 (default) writes from a single process; None uses os.cpu_count() minus one.
    """

    shard_units: int = 64
    """Maximum number of family units (cells, tiles, cell pairs, ...) per shard. Default: 64."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        env_prefix="E2SAT_ENCODER_",
        extra="forbid",
    )


class DecoderConfig(BaseSettings):
    """Configuration settings for decoding and serializing solutions."""

    viewer_base_url: str = "https://e2.bucas.name/"
    """Base address of the board viewer."""

    motifs_order: str = "jblackwood"
    """Value of the viewer's `motifs_order` parameter (the pattern-to-motif mapping)."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        env_prefix="E2SAT_DECODER_",
        extra="forbid",
    )


class LogConfig(BaseSettings):
    """Configuration settings for run logs."""

    log_dir: str = "logs"
    """Directory under which per-run log files are created. Default: "logs"."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        env_prefix="E2SAT_LOG_",
        extra="forbid",
    )


encoder_config = EncoderConfig()
decoder_config = DecoderConfig()
log_config = LogConfig()
