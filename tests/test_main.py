"""
Unit tests for doccpages.__main__ module
"""
import runpy
import unittest
from unittest.mock import patch


class TestMainEntryPoint(unittest.TestCase):
    """Test the main entry point functionality"""

    def test_main_module_imports(self):
        """Test that main module can be imported"""
        import doccpages.__main__
        self.assertTrue(hasattr(doccpages.__main__, 'main'))

    @patch('doccpages.cli.main')
    def test_exit_code_zero_when_main_returns_none(self, mock_main):
        mock_main.return_value = None

        with self.assertRaises(SystemExit) as ctx:
            runpy.run_module('doccpages', run_name='__main__')

        self.assertEqual(ctx.exception.code, 0)
        mock_main.assert_called_once()

    @patch('doccpages.cli.main')
    def test_exit_code_passed_through(self, mock_main):
        mock_main.return_value = 64

        with self.assertRaises(SystemExit) as ctx:
            runpy.run_module('doccpages', run_name='__main__')

        self.assertEqual(ctx.exception.code, 64)


if __name__ == '__main__':
    unittest.main()
