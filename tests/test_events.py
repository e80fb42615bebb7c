"""
Unit tests for the dashboard reducer.
"""
import pytest

from compras.backend import Session
from compras.events import (AUTHENTICATED, LOADING, UNAUTHENTICATED, DashboardState,
                            RecordInserted, RecordsLoaded, SessionChanged, reduce)
from compras.records import PurchaseRecord
from conftest import make_row

ANA = Session(user_id=1, email="ana@example.com")
BETO = Session(user_id=2, email="beto@example.com")


def rec(id, codigo="ABC"):
    return PurchaseRecord.from_row(make_row(id, codigo))


def authed(*records):
    return DashboardState(status=AUTHENTICATED, session=ANA, purchases=tuple(records))


class TestSessionChanged:

    def test_initial_state_is_loading(self):
        assert DashboardState().status == LOADING

    def test_no_session_leaves_loading_unauthenticated(self):
        state = reduce(DashboardState(), SessionChanged(None))
        assert state.status == UNAUTHENTICATED
        assert state.purchases == ()

    def test_session_authenticates(self):
        state = reduce(DashboardState(), SessionChanged(ANA))
        assert state.status == AUTHENTICATED
        assert state.session == ANA

    def test_sign_out_clears_list(self):
        state = reduce(authed(rec(1), rec(2)), SessionChanged(None))
        assert state.status == UNAUTHENTICATED
        assert state.session is None
        assert state.purchases == ()

    def test_same_user_refresh_keeps_list(self):
        refreshed = Session(user_id=1, email="ana@example.com", access_token="new")
        state = reduce(authed(rec(1)), SessionChanged(refreshed))
        assert state.session.access_token == "new"
        assert [r.id for r in state.purchases] == [1]

    def test_other_user_starts_empty(self):
        state = reduce(authed(rec(1)), SessionChanged(BETO))
        assert state.session == BETO
        assert state.purchases == ()


class TestRecords:

    def test_loaded_records_keep_order(self):
        state = reduce(authed(), RecordsLoaded((rec(3), rec(2), rec(1))))
        assert [r.id for r in state.purchases] == [3, 2, 1]

    def test_insert_prepends_one_record(self):
        state = reduce(authed(rec(2), rec(1)), RecordInserted(rec(3)))
        assert [r.id for r in state.purchases] == [3, 2, 1]

    def test_insert_for_known_id_is_ignored(self):
        before = authed(rec(2), rec(1))
        assert reduce(before, RecordInserted(rec(2))) is before

    def test_feed_rows_received_before_fetch_stay_on_top(self):
        state = reduce(authed(), RecordInserted(rec(5)))
        state = reduce(state, RecordsLoaded((rec(5), rec(4), rec(3))))
        assert [r.id for r in state.purchases] == [5, 4, 3]

        state = reduce(authed(rec(6)), RecordsLoaded((rec(4), rec(3))))
        assert [r.id for r in state.purchases] == [6, 4, 3]

    @pytest.mark.parametrize("event", [RecordInserted(rec(1)), RecordsLoaded((rec(1),))])
    def test_records_ignored_when_signed_out(self, event):
        state = DashboardState(status=UNAUTHENTICATED)
        assert reduce(state, event) is state

    def test_unknown_event(self):
        with pytest.raises(TypeError):
            reduce(DashboardState(), object())
