import pytest

from mockserver.routing import InvalidPatternError, RouteTable, parse_pattern
from mockserver.testing.rules import make_rule


def build(*paths):
    return RouteTable.build([make_rule(path=p) for p in paths])


def test_lookup_extracts_named_param():
    matched = build('/users/:id').lookup('/users/42')

    assert matched.index == 0
    assert matched.params == {'id': '42'}


def test_lookup_param_needs_a_segment():
    table = build('/users/:id')

    assert table.lookup('/users') is None
    assert table.lookup('/users/') is None
    assert table.lookup('/users/42/extra') is None


def test_lookup_literal_is_case_sensitive():
    table = build('/Health')

    assert table.lookup('/Health') is not None
    assert table.lookup('/health') is None


def test_lookup_multiple_params():
    matched = build('/orgs/:org/repos/:repo').lookup('/orgs/acme/repos/web')

    assert matched.params == {'org': 'acme', 'repo': 'web'}


def test_lookup_root_path():
    matched = build('/').lookup('/')

    assert matched.index == 0
    assert matched.params == {}


def test_lookup_not_found():
    assert build('/users/:id').lookup('/orders/1') is None


def test_literal_segment_wins_over_param():
    """Test that the more specific pattern matches regardless of order."""
    table = build('/users/:id', '/users/me')

    assert table.lookup('/users/me').index == 1
    assert table.lookup('/users/7').index == 0


def test_catch_all_binds_remainder():
    table = build('/files/*rest')

    assert table.lookup('/files/a/b/c.txt').params == {'rest': 'a/b/c.txt'}
    assert table.lookup('/files/') is None
    assert table.lookup('/files') is None


def test_duplicate_pattern_keeps_last_rule():
    """Two rules on the same path: the table only remembers the later one."""
    rules = [
        make_rule(method='GET', path='/items/:id'),
        make_rule(method='DELETE', path='/items/:id'),
    ]
    table = RouteTable.build(rules)

    assert len(table) == 1
    assert table.lookup('/items/3').index == 1


def test_build_is_deterministic():
    paths = ('/a/:x', '/a/b', '/c/*rest', '/a/:x')

    first, second = build(*paths), build(*paths)

    for path in ('/a/b', '/a/z', '/c/d/e', '/nope'):
        assert first.lookup(path) == second.lookup(path)


@pytest.mark.parametrize('raw', [
    'users/:id',
    '/users/:',
    '/a/:id/b/:id',
    '/files/*rest/more',
])
def test_parse_pattern_rejects_malformed(raw):
    with pytest.raises(InvalidPatternError):
        parse_pattern(raw)
