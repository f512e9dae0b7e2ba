"""
Core utilities module for reposync.
"""

from reposync.core.utils.inputs import (
    DEFAULT_CONFIG_PATH,
    dedupe_strings,
    parse_bool,
    parse_newline_list,
    parse_pr_tags,
    parse_topic_list,
    resolve_config_path,
    str_or_none,
    trim_and_filter,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "str_or_none",
    "parse_bool",
    "trim_and_filter",
    "parse_newline_list",
    "parse_topic_list",
    "parse_pr_tags",
    "dedupe_strings",
    "resolve_config_path",
]
