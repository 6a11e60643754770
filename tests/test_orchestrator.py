import random
import unittest
from unittest.mock import patch

from game import (
    PLAYING,
    WON,
    CascadeLimitExceeded,
    GameConfig,
    GameState,
    InMemorySyncHub,
    MoveOrchestrator,
    create_board,
    initial_state,
    is_legal_target,
)


class FakeClock:
    def __init__(self, t=0.0):
        self.t = t

    def __call__(self):
        return self.t


def make_board(rows, cols, cells):
    board = create_board(rows, cols)
    for (r, c), (count, owner) in cells.items():
        board = board.with_cell(r, c, count, owner)
    return board


class TestSubmitMove(unittest.TestCase):
    def setUp(self):
        self.calls = []
        self.game = MoveOrchestrator(presenter=self._record)

    def _record(self, board, events, turn, status):
        self.calls.append((board, events, turn, status))

    def test_given_new_game_when_first_move_then_orb_placed_and_turn_passes(self):
        self.assertTrue(self.game.submit_move(4, 3))
        s = self.game.state
        self.assertEqual((s.board.at(4, 3).count, s.board.at(4, 3).owner), (1, 1))
        self.assertEqual(s.current_player, 2)
        self.assertEqual(s.move_count, 1)
        self.assertEqual(s.status, PLAYING)
        self.assertFalse(self.game.busy)
        board, events, turn, status = self.calls[-1]
        self.assertEqual(board, s.board)
        self.assertEqual(events, [])
        self.assertEqual((turn, status), (2, PLAYING))

    def test_given_out_of_bounds_when_submitting_then_rejected_without_change(self):
        before = self.game.state
        self.assertFalse(self.game.submit_move(9, 0))
        self.assertFalse(self.game.submit_move(-1, 2))
        self.assertIs(self.game.state, before)
        self.assertEqual(self.calls, [])

    def test_given_opponent_cell_when_submitting_then_rejected(self):
        self.game.submit_move(0, 0)
        before = self.game.state
        self.assertFalse(self.game.submit_move(0, 0))
        self.assertIs(self.game.state, before)
        self.assertFalse(self.game.busy)

    def test_given_corner_when_player_one_fills_it_then_cascade_resolves_immediately(self):
        for mv in [(0, 0), (8, 5), (0, 0)]:
            self.assertTrue(self.game.submit_move(*mv))
        b = self.game.state.board
        self.assertEqual((b.at(0, 0).count, b.at(0, 0).owner), (0, None))
        self.assertEqual((b.at(0, 1).count, b.at(0, 1).owner), (1, 1))
        self.assertEqual((b.at(1, 0).count, b.at(1, 0).owner), (1, 1))
        self.assertEqual(len(self.calls[-1][1]), 1)
        self.assertEqual(self.game.last_events, self.calls[-1][1])

    def test_given_opponent_wiped_out_when_move_completes_then_won_and_further_moves_rejected(self):
        start = GameState(
            board=make_board(3, 3, {(0, 0): (1, 2), (0, 1): (2, 1), (2, 2): (1, 1)}),
            current_player=1,
            move_count=4,
            status=PLAYING,
        )
        game = MoveOrchestrator(state=start, config=GameConfig(rows=3, cols=3))
        self.assertTrue(game.submit_move(0, 1))
        s = game.state
        self.assertEqual(s.status, WON)
        self.assertEqual(s.winner, 1)
        self.assertEqual(s.current_player, 1)
        self.assertEqual(s.board.owners_alive(), {1})
        self.assertFalse(game.submit_move(1, 1))
        self.assertIs(game.state, s)

    def test_given_move_in_flight_when_presenter_submits_again_then_rejected(self):
        results = []

        def reenter(board, events, turn, status):
            results.append(self.game.submit_move(5, 5))

        self.game.presenter = reenter
        self.assertTrue(self.game.submit_move(1, 1))
        after_first = self.game.state
        self.assertEqual(results, [False])
        self.assertEqual(after_first.move_count, 1)
        self.assertEqual(after_first.board.at(5, 5).count, 0)
        self.assertFalse(self.game.busy)

    def test_given_cascade_failure_when_submitting_then_state_kept_and_guard_released(self):
        self.game.submit_move(0, 0)
        before = self.game.state
        with patch('chain_core.orchestrator.resolve_cascade', side_effect=CascadeLimitExceeded('boom')):
            with self.assertRaises(CascadeLimitExceeded):
                self.game.submit_move(2, 2)
        self.assertIs(self.game.state, before)
        self.assertFalse(self.game.busy)
        self.assertTrue(self.game.submit_move(2, 2))

    def test_given_failing_presenter_when_move_accepted_then_state_still_published(self):
        def broken(*args):
            raise RuntimeError('render failed')

        self.game.presenter = broken
        with self.assertLogs('chain_core.orchestrator', level='ERROR'):
            self.assertTrue(self.game.submit_move(3, 3))
        self.assertEqual(self.game.state.move_count, 1)
        self.assertFalse(self.game.busy)

    def test_given_moves_played_when_reset_then_fresh_state_same_dimensions(self):
        game = MoveOrchestrator(config=GameConfig(rows=5, cols=4, players=3))
        game.submit_move(0, 0)
        game.submit_move(1, 1)
        game.reset()
        self.assertEqual(game.state, initial_state(5, 4, 3))
        self.assertEqual(game.last_events, [])


class TestFullGames(unittest.TestCase):
    def _play_random_game(self, seed, config):
        rng = random.Random(seed)
        game = MoveOrchestrator(config=config)
        for _ in range(2000):
            if game.state.status == WON:
                break
            s = game.state
            legal = [rc for rc in s.board.coords() if is_legal_target(s, *rc)]
            self.assertTrue(game.submit_move(*rng.choice(legal)), seed)
        return game.state

    def test_given_random_legal_moves_when_played_out_then_game_ends_with_winner_owning_board(self):
        for seed in range(5):
            s = self._play_random_game(seed, GameConfig())
            self.assertEqual(s.status, WON, seed)
            self.assertEqual(s.board.owners_alive(), {s.winner}, seed)
            self.assertGreaterEqual(s.move_count, 2)

    def test_given_three_players_when_played_out_then_someone_wins(self):
        s = self._play_random_game(7, GameConfig(rows=5, cols=5, players=3))
        self.assertEqual(s.status, WON)
        self.assertEqual(s.board.owners_alive(), {s.winner})


class TestGuardAndPlayback(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.game = MoveOrchestrator(
            config=GameConfig(rows=3, cols=3, guard_timeout=3.0),
            hold_for_playback=True,
            clock=self.clock,
        )
        # Player 1 corner at one orb, player 2 elsewhere; next P1 move bursts the corner.
        self.game.submit_move(0, 0)
        self.game.submit_move(2, 2)

    def test_given_quiet_move_when_holding_for_playback_then_guard_not_kept(self):
        self.assertFalse(self.game.busy)
        self.assertIsNone(self.game.playback)

    def test_given_explosion_when_holding_for_playback_then_next_move_rejected_until_ticked(self):
        self.assertTrue(self.game.submit_move(0, 0))
        self.assertTrue(self.game.busy)
        before = self.game.state
        self.assertFalse(self.game.submit_move(1, 1))
        self.assertIs(self.game.state, before)

        # Drop animation first, then the single wave
        self.assertEqual(self.game.tick(0.1), [])
        self.clock.t = 0.6
        due = self.game.tick()
        self.assertEqual([ev.origin for ev in due], [(0, 0)])
        self.assertTrue(self.game.busy)
        self.clock.t = 1.1
        self.game.tick()
        self.assertFalse(self.game.busy)
        self.assertIsNone(self.game.playback)
        self.assertTrue(self.game.submit_move(1, 1))

    def test_given_stuck_playback_when_timeout_elapses_then_guard_forced_free(self):
        self.game.submit_move(0, 0)
        self.clock.t = 2.9
        self.assertTrue(self.game.busy)
        self.clock.t = 3.0
        with self.assertLogs('chain_core.guard', level='WARNING'):
            self.assertFalse(self.game.busy)
        self.assertTrue(self.game.submit_move(1, 1))

    def test_given_playback_running_when_reset_then_playback_abandoned(self):
        self.game.submit_move(0, 0)
        schedule = self.game.playback
        self.game.reset()
        self.assertTrue(schedule.cancelled)
        self.assertEqual(schedule.due(10.0), [])
        self.assertFalse(self.game.busy)
        self.assertEqual(self.game.state.move_count, 0)

    def test_given_presenter_signals_done_when_playback_finished_then_guard_released(self):
        self.game.submit_move(0, 0)
        self.assertTrue(self.game.busy)
        self.game.playback_finished()
        self.assertFalse(self.game.busy)


class TestSync(unittest.TestCase):
    def setUp(self):
        self.hub = InMemorySyncHub()
        cfg = GameConfig(rows=4, cols=4)
        self.a = MoveOrchestrator(config=cfg, sync=self.hub, game_id='4242')
        self.b = MoveOrchestrator(config=cfg)
        self.b.attach(self.hub, '4242')

    def test_given_new_id_when_attaching_then_document_seeded_with_local_state(self):
        self.assertEqual(self.hub.get('4242'), initial_state(4, 4, 2))
        self.assertEqual(self.hub.version('4242'), 1)

    def test_given_move_on_one_client_when_published_then_peer_adopts_snapshot(self):
        self.assertTrue(self.a.submit_move(1, 1))
        self.assertEqual(self.b.state, self.a.state)
        self.assertEqual(self.b.state.current_player, 2)
        self.assertTrue(self.b.submit_move(2, 2))
        self.assertEqual(self.a.state, self.b.state)
        self.assertEqual(self.hub.get('4242').move_count, 2)

    def test_given_existing_game_when_joining_then_existing_snapshot_not_overwritten(self):
        self.a.submit_move(0, 0)
        c = MoveOrchestrator(config=GameConfig(rows=4, cols=4))
        c.attach(self.hub, '4242')
        self.assertEqual(c.state, self.a.state)
        self.assertEqual(self.hub.get('4242').move_count, 1)

    def test_given_remote_update_when_local_guard_held_then_guard_cleared_and_state_replaced(self):
        self.b.guard.acquire()
        remote = GameState(
            board=make_board(4, 4, {(3, 3): (1, 2)}),
            current_player=1,
            move_count=7,
            status=PLAYING,
        )
        self.hub.publish('4242', remote)
        self.assertIs(self.b.state, remote)
        self.assertFalse(self.b.busy)

    def test_given_identical_snapshot_when_adopting_then_ignored(self):
        self.assertFalse(self.b.adopt_remote(self.b.state))

    def test_given_reset_when_published_then_peer_resets_too(self):
        self.a.submit_move(0, 0)
        self.b.reset()
        self.assertEqual(self.a.state, initial_state(4, 4, 2))

    def test_given_peer_moving_from_its_presenter_when_publishing_then_all_clients_converge(self):
        c = MoveOrchestrator(config=GameConfig(rows=4, cols=4))
        c.attach(self.hub, '4242')
        replies = []

        def answer(board, events, turn, status):
            if not replies and turn == 2:
                replies.append(self.b.submit_move(3, 3))

        self.b.presenter = answer
        self.assertTrue(self.a.submit_move(0, 0))
        self.assertEqual(replies, [True])
        latest = self.hub.get('4242')
        self.assertEqual(latest.move_count, 2)
        for client in (self.a, self.b, c):
            self.assertEqual(client.state, latest)

    def test_given_detached_client_when_peer_moves_then_no_update(self):
        self.b.detach()
        self.a.submit_move(0, 0)
        self.assertEqual(self.b.state.move_count, 0)


if __name__ == '__main__':
    unittest.main(verbosity=2)
