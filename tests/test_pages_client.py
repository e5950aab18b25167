"""
Tests for the GitHub Pages API client.
"""

import unittest
from unittest.mock import MagicMock, patch

import requests

from doccpages.infra.pages_client import PagesClient


def response(status_code, json_body=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.content = b'{}' if json_body is not None else b''
    resp.json.return_value = json_body
    return resp


class TestPagesClient(unittest.TestCase):
    """Tests for PagesClient."""

    def setUp(self):
        self.client = PagesClient(token='tok', base_delay=0.01)

    @patch('doccpages.infra.pages_client.requests.request')
    def test_get_pages(self, mock_request):
        mock_request.return_value = response(200, {'html_url': 'https://octo.github.io/app/'})

        info = self.client.get_pages('octo', 'app')

        self.assertEqual(info['html_url'], 'https://octo.github.io/app/')
        method, url = mock_request.call_args.args
        self.assertEqual(method, 'GET')
        self.assertEqual(url, 'https://api.github.com/repos/octo/app/pages')
        headers = mock_request.call_args.kwargs['headers']
        self.assertEqual(headers['Authorization'], 'Bearer tok')

    @patch('doccpages.infra.pages_client.requests.request')
    def test_get_pages_not_enabled(self, mock_request):
        mock_request.return_value = response(404)

        self.assertIsNone(self.client.get_pages('octo', 'app'))

    @patch('doccpages.infra.pages_client.time.sleep')
    @patch('doccpages.infra.pages_client.requests.request')
    def test_retries_on_server_error(self, mock_request, mock_sleep):
        mock_request.side_effect = [
            response(502),
            response(429),
            response(200, {'html_url': 'https://octo.github.io/app/'}),
        ]

        info = self.client.get_pages('octo', 'app')

        self.assertEqual(info['html_url'], 'https://octo.github.io/app/')
        self.assertEqual(mock_request.call_count, 3)
        self.assertEqual(mock_sleep.call_count, 2)
        delays = [c.args[0] for c in mock_sleep.call_args_list]
        self.assertLess(delays[0], delays[1])

    @patch('doccpages.infra.pages_client.time.sleep')
    @patch('doccpages.infra.pages_client.requests.request')
    def test_gives_up_after_max_retries(self, mock_request, mock_sleep):
        mock_request.side_effect = requests.ConnectionError('down')

        self.assertIsNone(self.client.get_pages('octo', 'app'))
        self.assertEqual(mock_request.call_count, 3)
        # No sleep after the last attempt
        self.assertEqual(mock_sleep.call_count, 2)

    @patch('doccpages.infra.pages_client.requests.request')
    def test_request_build(self, mock_request):
        mock_request.return_value = response(201, {'status': 'queued'})

        self.assertTrue(self.client.request_build('octo', 'app'))
        self.assertEqual(mock_request.call_args.args[0], 'POST')

    @patch('doccpages.infra.pages_client.requests.request')
    def test_request_build_without_token(self, mock_request):
        client = PagesClient(token='')

        self.assertFalse(client.request_build('octo', 'app'))
        mock_request.assert_not_called()

    @patch('doccpages.infra.pages_client.requests.request')
    def test_pages_url_fallback(self, mock_request):
        mock_request.return_value = response(404)

        self.assertEqual(self.client.pages_url('octo', 'app'), 'https://octo.github.io/app/')

    @patch('doccpages.infra.pages_client.requests.request')
    def test_enterprise_api_url(self, mock_request):
        mock_request.return_value = response(404)
        client = PagesClient(token='tok', api_url='https://ghe.example.com/api/v3/')

        client.get_pages('octo', 'app')

        self.assertEqual(mock_request.call_args.args[1],
                         'https://ghe.example.com/api/v3/repos/octo/app/pages')


if __name__ == '__main__':
    unittest.main()
