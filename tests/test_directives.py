from __future__ import annotations

import pytest

from cloud_assistant.directives import Directive, DirectiveKind, parse_directives


def test_tokens_are_recognised_regardless_of_order():
    result = parse_directives("USE_EXCEL USE_EC2")
    assert result.directives == {Directive.LIST_INSTANCES, Directive.EXPORT}
    assert not result.is_direct_answer


def test_free_text_is_a_direct_answer():
    text = "S3 is an object storage service; buckets hold objects."
    result = parse_directives(text)
    assert result.is_direct_answer
    assert result.params == {}
    assert result.raw_text == text


def test_punctuation_around_tokens_is_ignored():
    result = parse_directives("USE_EC2, USE_S3.")
    assert result.directives == {Directive.LIST_INSTANCES, Directive.LIST_BUCKETS}


@pytest.mark.parametrize("text", ["use_ec2", "USE_EC2X", "XUSE_S3", "PutObject"])
def test_matching_is_exact(text):
    assert parse_directives(text).is_direct_answer


def test_explicit_bucket_parameter_is_extracted():
    result = parse_directives("CREATE_S3 bucket=team-logs")
    assert result.has(Directive.CREATE_BUCKET)
    assert result.param("bucket") == "team-logs"
    assert result.param("BUCKET") == "team-logs"


def test_trailing_bare_token_is_not_a_parameter():
    result = parse_directives("CREATE_S3 team-logs")
    assert result.directives == {Directive.CREATE_BUCKET}
    assert result.param("bucket") is None


def test_parameters_are_ignored_without_directives():
    assert parse_directives("Answer: bucket=foo is fine").params == {}


def test_directive_kinds():
    assert Directive.LIST_INSTANCES.kind is DirectiveKind.FETCH
    assert Directive.LIST_BUCKETS.kind is DirectiveKind.FETCH
    assert Directive.CREATE_BUCKET.kind is DirectiveKind.CREATE
    assert Directive.EXPORT.kind is DirectiveKind.DERIVE
    assert Directive.UPLOAD.kind is DirectiveKind.PUBLISH
