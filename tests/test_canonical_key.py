"""
Contract test for raw meminfo label canonicalization
"""

from meminfo_exporter.collectors.keys import canonical_key


def test_parenthesized_qualifier_is_rewritten() -> None:
    """
    Active(anon) -> Active_anon, with or without the trailing colon
    """
    assert canonical_key("Active(anon)") == "Active_anon"
    assert canonical_key("Active(anon):") == "Active_anon"
    assert canonical_key("Inactive(file):") == "Inactive_file"


def test_plain_key_is_unchanged() -> None:
    assert canonical_key("MemTotal") == "MemTotal"
    assert canonical_key("MemTotal:") == "MemTotal"
    assert canonical_key("HugePages_Total:") == "HugePages_Total"


def test_only_one_trailing_colon_is_stripped() -> None:
    assert canonical_key("Odd::") == "Odd:"
