import io
import unittest
from contextlib import redirect_stdout

from chain_core.cli import main, parse_coord, parse_script


class TestCli(unittest.TestCase):
    def test_given_text_when_parsing_coord_then_comma_or_space_accepted(self):
        self.assertEqual(parse_coord('1,2'), (1, 2))
        self.assertEqual(parse_coord(' 3 4 '), (3, 4))
        self.assertIsNone(parse_coord('x,1'))
        self.assertIsNone(parse_coord('1,2,3'))

    def test_given_script_when_parsing_then_moves_in_order(self):
        self.assertEqual(parse_script('0,0; 2,2;;1,1'), [(0, 0), (2, 2), (1, 1)])
        with self.assertRaises(ValueError):
            parse_script('0,0;oops')

    def test_given_scripted_game_when_run_then_explosion_and_rejection_printed(self):
        buf = io.StringIO()
        with redirect_stdout(buf):
            main(['--rows', '3', '--cols', '3', '--moves', '0,0;2,2;0,0;0,1'])
        out = buf.getvalue()
        self.assertIn('Initial board:', out)
        self.assertIn('wave 1: (0, 0)', out)
        self.assertIn('move (0, 1) rejected', out)
        self.assertIn("Player 2's turn", out)

    def test_given_winning_script_when_run_then_winner_announced(self):
        # P1 corner bursts and captures P2's only orb on the adjacent edge
        buf = io.StringIO()
        with redirect_stdout(buf):
            main(['--rows', '3', '--cols', '3', '--moves', '0,0;1,0;0,0;9,9'])
        self.assertIn('Player 1 wins!', buf.getvalue())
        self.assertNotIn('(9, 9)', buf.getvalue())


if __name__ == '__main__':
    unittest.main(verbosity=2)
