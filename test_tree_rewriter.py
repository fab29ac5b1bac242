#!/usr/bin/env python3
"""
Tests for the cycle-safe content tree rewriter.
"""

import sys
from pathlib import Path

import pytest

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent))

from cms_assets.core.tree_rewriter import TreeRewriter, rewrite_tree


def upper_urls(value, key):
    return value.upper() if value.startswith("http") else value


def test_unchanged_mapping_keeps_identity():
    inner = {"b": 1, "c": "text", "d": None, "e": True}
    tree = {"a": inner, "title": "hello", "count": 3.5}
    result = rewrite_tree(tree, upper_urls)
    assert result is tree
    assert result["a"] is inner


def test_changed_mapping_is_copied_once():
    keep = {"z": 1}
    tree = {"x": "http://a", "keep": keep, "y": "http://b", "plain": "p"}
    result = rewrite_tree(tree, upper_urls)

    assert result is not tree
    assert result == {"x": "HTTP://A", "keep": keep, "y": "HTTP://B", "plain": "p"}
    assert result["keep"] is keep
    # Input untouched
    assert tree["x"] == "http://a"
    assert tree["y"] == "http://b"


def test_sequences_are_always_rebuilt():
    items = ["a", 1, None]
    result = rewrite_tree(items, upper_urls)
    assert result == items
    assert result is not items

    pair = ("http://a", "b")
    assert rewrite_tree(pair, upper_urls) == ("HTTP://A", "b")


def test_transform_receives_keys():
    seen = []

    def record(value, key):
        seen.append((value, key))
        return value

    rewrite_tree({"title": "t", "tags": ["x", "y"], "n": 4}, record)
    assert sorted(seen, key=lambda s: s[0]) == [("t", "title"), ("x", None), ("y", None)]


def test_root_string_is_transformed():
    assert rewrite_tree("http://a", upper_urls) == "HTTP://A"
    assert rewrite_tree(42, upper_urls) == 42


def test_direct_cycle_terminates():
    node = {"name": "parent", "url": "http://a"}
    node["self"] = node
    result = rewrite_tree(node, upper_urls)

    assert result["url"] == "HTTP://A"
    # The back-reference is the original container, not a rewritten copy
    assert result["self"] is node
    assert node["url"] == "http://a"


def test_transitive_cycle_terminates():
    parent = {"name": "parent"}
    child = {"parent": parent, "src": "http://child"}
    parent["child"] = child

    result = rewrite_tree(parent, upper_urls)
    assert result is not parent
    assert result["child"]["src"] == "HTTP://CHILD"
    assert result["child"]["parent"] is parent


def test_list_cycle_terminates():
    items = ["http://a"]
    items.append(items)
    result = rewrite_tree(items, upper_urls)
    assert result[0] == "HTTP://A"
    assert result[1] is items


def test_shared_siblings_are_both_rewritten():
    calls = []

    def count(value, key):
        calls.append(value)
        return upper_urls(value, key)

    shared = {"src": "http://shared"}
    tree = {"one": shared, "two": [shared]}
    result = rewrite_tree(tree, count)

    assert result["one"]["src"] == "HTTP://SHARED"
    assert result["two"][0]["src"] == "HTTP://SHARED"
    assert len(calls) == 2


def test_transform_errors_propagate():
    def boom(value, key):
        raise RuntimeError("bad leaf")

    with pytest.raises(RuntimeError):
        TreeRewriter().rewrite({"a": ["x"]}, boom)


if __name__ == "__main__":
    sys.exit(pytest.main([__file__]))
