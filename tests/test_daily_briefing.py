"""
Unit tests for daily_briefing.py.
"""

import io
import json
import unittest
import sys
import os
import tempfile
from contextlib import redirect_stdout
from datetime import date
from unittest.mock import MagicMock, patch

import requests

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import daily_briefing
from core.dashboard_data import load_dashboard
from core.store import SQLiteStore, StoreError

TODAY = date(2024, 6, 30)


class TestDailyBriefing(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.tmpdir.name, 'ne.db')
        store = SQLiteStore(self.db_path, user_id='u1')
        store.insert('contacts', {'name': 'Ada', 'last_contact_date': '2024-06-10'})
        store.insert('contacts', {'name': 'Bob'})
        store.close()
        self.env = patch.dict(os.environ, {'NE_BACKEND_URL': ''})
        self.env.start()
        self.snapshot = patch('config.SNAPSHOT_PATH', os.path.join(self.tmpdir.name, 'snap.json'))
        self.snapshot.start()

    def tearDown(self):
        self.snapshot.stop()
        self.env.stop()
        self.tmpdir.cleanup()

    def _run(self, *argv):
        out = io.StringIO()
        with redirect_stdout(out):
            code = daily_briefing.main(list(argv))
        return code, out.getvalue()

    def test_format_briefing(self):
        store = SQLiteStore(self.db_path, user_id='u1')
        view = load_dashboard(store, now=TODAY)
        text = daily_briefing.format_briefing(view)
        store.close()
        self.assertIn("Daily Briefing: Sunday, June 30", text)
        self.assertIn("Reconnect with Ada", text)
        self.assertIn("Make first contact with Bob", text)
        self.assertIn("Strength change: n/a", text)

    def test_json_output(self):
        code, out = self._run('--db', self.db_path, '--user', 'u1', '--date', '2024-06-30', '--json')
        self.assertEqual(code, 0)
        data = json.loads(out)
        self.assertEqual(data['date'], '2024-06-30')
        self.assertEqual([a['contact'] for a in data['actions']], ['Ada', 'Bob'])
        self.assertIsNone(data['weekly']['network_strength_change'])

    def test_generate_tasks(self):
        code, _ = self._run('--db', self.db_path, '--user', 'u1', '--date', '2024-06-30',
                            '--generate-tasks')
        self.assertEqual(code, 0)
        store = SQLiteStore(self.db_path, user_id='u1')
        tasks = store.select('daily_tasks', {'due_date': '2024-06-30'})
        store.close()
        self.assertEqual(sorted(t['task_type'] for t in tasks), ['reach_out', 'warm_up'])

    def test_generate_tasks_store_failure(self):
        """Test a failed task save exits with an error instead of a traceback."""
        with patch('core.store.SQLiteStore.insert', side_effect=StoreError("insert failed")):
            code, out = self._run('--db', self.db_path, '--user', 'u1', '--date', '2024-06-30',
                                  '--generate-tasks')
        self.assertEqual(code, 1)
        self.assertIn("could not save today's tasks", out)
        store = SQLiteStore(self.db_path, user_id='u1')
        self.assertEqual(store.select('daily_tasks'), [])
        store.close()

    def test_bad_date(self):
        code, out = self._run('--db', self.db_path, '--user', 'u1', '--date', 'tomorrow')
        self.assertEqual(code, 1)
        self.assertIn("invalid --date", out)

    def test_no_user(self):
        with patch.dict(os.environ, {'NE_USER_ID': ''}):
            code, _ = self._run('--db', self.db_path)
        self.assertEqual(code, 1)

    @patch.dict(os.environ, {'DISCORD_WEBHOOK_URL': 'https://discord.example.com/hook'})
    @patch('daily_briefing.requests.post')
    def test_send_discord(self, mock_post):
        mock_post.return_value = MagicMock()
        self.assertTrue(daily_briefing.send_discord("hello"))
        self.assertEqual(mock_post.call_args.kwargs['json'], {'content': 'hello'})

    @patch.dict(os.environ, {'DISCORD_WEBHOOK_URL': 'https://discord.example.com/hook'})
    @patch('daily_briefing.requests.post', side_effect=requests.ConnectionError("down"))
    def test_send_discord_failure(self, _):
        self.assertFalse(daily_briefing.send_discord("hello"))


if __name__ == '__main__':
    unittest.main()
