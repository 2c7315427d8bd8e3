import pytest
from gaflib.core.walk import (
    parse_path, format_walk, normalise_name, Grammar, Orientation, OrientedName, PathParseError, ParseErrorKind
)

F, R = Orientation.FORWARD, Orientation.REVERSE


def names(walk):
    return [str(i) for i in walk]


class TestOrientedName:
    def test_str_and_from_string(self):
        node = OrientedName('utg7', R)
        assert str(node) == 'utg7-'
        assert OrientedName.from_string('utg7-') == node
        assert OrientedName.from_string(' 12+ ') == OrientedName('12', F)

    def test_invalid(self):
        with pytest.raises(ValueError):
            OrientedName('', F)
        with pytest.raises(ValueError):
            OrientedName(' 5', F)
        with pytest.raises(ValueError):
            OrientedName('5', Orientation.UNSPECIFIED)
        with pytest.raises(ValueError):
            OrientedName.from_string('5')
        with pytest.raises(ValueError):
            OrientedName.from_string('5*')

    def test_reverse(self):
        assert OrientedName('5', F).reverse() == OrientedName('5', R)
        assert OrientedName('5', R).reverse().is_forward

    def test_orientation_symbols(self):
        assert Orientation.from_symbol('>') is F
        assert Orientation.from_symbol('<') is R
        assert Orientation.from_symbol('+') is F
        assert F.flip() is R
        assert Orientation.UNSPECIFIED.flip() is Orientation.UNSPECIFIED
        with pytest.raises(ValueError, match="orientation"):
            Orientation.from_symbol('x')


class TestNormalisation:
    def test_trims_and_drops_redundant_sign(self):
        assert normalise_name(' 5+ ', R) == OrientedName('5', R)
        assert normalise_name('5-', F) == OrientedName('5', F)

    def test_trims_again_after_dropping_sign(self):
        assert normalise_name('5 +', F) == OrientedName('5', F)
        assert parse_path('5 ++') == (OrientedName('5', F),)

    def test_idempotent(self):
        once = normalise_name('contig_1', F)
        assert normalise_name(once.name, once.orientation) == once

    def test_only_sign_left(self):
        with pytest.raises(PathParseError) as e:
            normalise_name('+', F)
        assert e.value.kind is ParseErrorKind.EMPTY_NODE_NAME


class TestGrammarDetection:
    def test_detect(self):
        assert Grammar.detect('>1<2') is Grammar.ARROW
        assert Grammar.detect('1+,2-') is Grammar.SUFFIX
        # Markers win over signs
        assert Grammar.detect('5+>3') is Grammar.ARROW


class TestEmptyPaths:
    @pytest.mark.parametrize('text', ['', '*', '   ', ' * '])
    def test_empty(self, text):
        with pytest.raises(PathParseError, match='path field is empty') as e:
            parse_path(text)
        assert e.value.kind is ParseErrorKind.EMPTY_PATH

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            parse_path('*')


class TestArrowGrammar:
    def test_basic(self):
        assert parse_path('>5>3<8') == (OrientedName('5', F), OrientedName('3', F), OrientedName('8', R))

    def test_order_is_traversal_order(self):
        assert names(parse_path('<utg9>utg2<utg1')) == ['utg9-', 'utg2+', 'utg1-']

    def test_commas_and_semicolons_ignored(self):
        assert names(parse_path('>5,>3;<8')) == ['5+', '3+', '8-']
        assert names(parse_path('>a;b')) == ['ab+']

    def test_redundant_signs(self):
        assert names(parse_path('>utg1+<utg2-')) == ['utg1+', 'utg2-']
        assert names(parse_path('<utg1+')) == ['utg1-']

    def test_text_before_first_marker_prefixes_first_name(self):
        assert names(parse_path('ab>5<6')) == ['ab5+', '6-']

    def test_mixed_markers_prefer_arrows(self):
        assert names(parse_path('5+>3')) == ['5+3+']

    def test_empty_name(self):
        with pytest.raises(PathParseError, match='empty segment name') as e:
            parse_path('>5><3')
        assert e.value.kind is ParseErrorKind.EMPTY_NODE_NAME
        with pytest.raises(PathParseError, match='empty segment name'):
            parse_path('>5>')
        with pytest.raises(PathParseError, match='empty segment name'):
            parse_path('> ;>1')

    def test_every_segment_is_oriented(self):
        for node in parse_path('>1<2>3<4>5'):
            assert node.orientation in (F, R)


class TestSuffixGrammar:
    def test_basic(self):
        assert parse_path('5+,3-,8+') == (OrientedName('5', F), OrientedName('3', R), OrientedName('8', F))

    def test_separators(self):
        assert names(parse_path(' 5+ ; 3-,,;8+ ')) == ['5+', '3-', '8+']

    def test_redundant_sign(self):
        assert names(parse_path('5++,6+-')) == ['5+', '6-']

    def test_round_trip(self):
        for node in parse_path('s1+,s2-,s10+'):
            assert OrientedName.from_string(str(node)) == node
            assert normalise_name(str(node)[:-1], node.orientation) == node

    def test_too_short(self):
        with pytest.raises(PathParseError, match='too short') as e:
            parse_path('5')
        assert e.value.kind is ParseErrorKind.ENTRY_TOO_SHORT
        with pytest.raises(PathParseError, match='too short'):
            parse_path('5+,3')

    def test_missing_orientation(self):
        with pytest.raises(PathParseError) as e:
            parse_path('5+,33,8+')
        assert e.value.kind is ParseErrorKind.MISSING_ORIENTATION
        assert e.value.reason == 'missing orientation (+/-) in path entry: 33'

    def test_first_error_wins(self):
        with pytest.raises(PathParseError) as e:
            parse_path('1,22')
        assert e.value.kind is ParseErrorKind.ENTRY_TOO_SHORT

    def test_no_entries(self):
        with pytest.raises(PathParseError) as e:
            parse_path(',;,')
        assert e.value.kind is ParseErrorKind.NO_NODES_IN_PATH

    def test_only_signs(self):
        with pytest.raises(PathParseError) as e:
            parse_path('++')
        assert e.value.kind is ParseErrorKind.EMPTY_NODE_NAME


class TestFormatting:
    def test_format_walk(self):
        assert format_walk(parse_path('>5>3<8')) == '5+, 3+, 8-'
        assert format_walk(parse_path('5+,3-'), separator=' ') == '5+ 3-'
