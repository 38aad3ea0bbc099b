"""Utility functions for helm_connect."""

from helm_connect.utils.env import env_bool, env_str, parse_bool, split_path_list

__all__ = [
    "env_bool",
    "env_str",
    "parse_bool",
    "split_path_list",
]
