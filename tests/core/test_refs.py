"""Tests for sqlchain.refs."""

import pytest

from sqlchain.refs import Ref


class TestRef:
    def test_unset(self):
        ref = Ref[int]()

        assert not ref.is_set
        assert ref.get() is None
        assert ref.get(-1) == -1
        with pytest.raises(LookupError):
            ref.value

    def test_set_and_read(self):
        ref = Ref[int]()
        ref.value = 3

        assert ref.is_set
        assert ref.value == 3
        assert ref.get(-1) == 3

    def test_initial_value(self):
        assert Ref(None).is_set
        assert Ref(None).value is None

    def test_repr(self):
        assert repr(Ref()) == "Ref(<unset>)"
        assert repr(Ref("lamp")) == "Ref('lamp')"
