"""
Tests for AsanaClient.

Covers initialization, task fetching, title extraction, error mapping and
retry behaviour of the shared request logic.
"""

from unittest.mock import Mock, patch

import pytest
import requests

from asana_unfurl.clients.asana_client import AsanaClient
from asana_unfurl.exceptions import APIError, AuthenticationError, NetworkError, ValidationError


def make_response(status_code=200, json_data=None, headers=None):
    response = Mock()
    response.status_code = status_code
    response.headers = headers or {}
    response.json.return_value = json_data if json_data is not None else {}
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status_code} Error", response=response
        )
    return response


@pytest.fixture
def client():
    return AsanaClient(token="test-token", max_retries=2)


class TestAsanaClientInitialization:

    def test_init_sets_bearer_token(self, client):
        assert client.token == "test-token"
        assert client.base_url == "https://app.asana.com/api/1.0"
        assert client.session.headers['Authorization'] == "Bearer test-token"
        assert client.session.headers['User-Agent'] == AsanaClient.USER_AGENT

    @pytest.mark.parametrize("token", ["", "   ", None])
    def test_empty_token_raises(self, token):
        with pytest.raises(ValidationError, match="Asana token cannot be empty"):
            AsanaClient(token=token)


class TestGetTask:

    @patch('requests.Session.request')
    def test_get_task_success(self, mock_request, client):
        mock_request.return_value = make_response(json_data={'data': {'gid': '123', 'name': 'Fix bug'}})

        task = client.get_task('123')

        assert task == {'gid': '123', 'name': 'Fix bug'}
        args, kwargs = mock_request.call_args
        assert args == ('GET', 'https://app.asana.com/api/1.0/tasks/123')
        assert kwargs['params'] == {'opt_fields': 'name'}
        assert kwargs['timeout'] == client.timeout

    @pytest.mark.parametrize("task_gid", ["", "abc", "12a"])
    def test_invalid_gid_raises(self, task_gid, client):
        with pytest.raises(ValidationError, match="Invalid Asana task GID"):
            client.get_task(task_gid)

    @pytest.mark.parametrize("status_code,exception,message", [
        (401, AuthenticationError, "authentication failed"),
        (403, AuthenticationError, "no access to task 123"),
        (404, APIError, "Asana task not found: 123"),
        (400, APIError, "Asana API error"),
    ])
    @patch('requests.Session.request')
    def test_http_errors_mapped(self, mock_request, status_code, exception, message, client):
        mock_request.return_value = make_response(status_code=status_code)

        with pytest.raises(exception, match=message) as exc_info:
            client.get_task('123')

        assert exc_info.value.status_code in (None, status_code)

    @patch('requests.Session.request')
    def test_not_found_carries_status_code(self, mock_request, client):
        mock_request.return_value = make_response(status_code=404)

        with pytest.raises(APIError) as exc_info:
            client.get_task('123')

        assert exc_info.value.status_code == 404

    @patch('requests.Session.request')
    def test_malformed_response_raises_api_error(self, mock_request, client):
        mock_request.return_value = make_response(json_data={'errors': []})

        with pytest.raises(APIError, match="Unexpected response"):
            client.get_task('123')

    @patch('time.sleep')
    @patch('requests.Session.request')
    def test_network_error_after_retries(self, mock_request, mock_sleep, client):
        mock_request.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(NetworkError, match="Network error after 2 retries"):
            client.get_task('123')

        assert mock_request.call_count == 3
        assert mock_sleep.call_count == 2


class TestGetTaskTitle:

    def test_returns_name(self, client):
        with patch.object(client, 'get_task', return_value={'name': 'Fix bug'}) as mock_get:
            assert client.get_task_title('123') == 'Fix bug'
        mock_get.assert_called_once_with('123')

    def test_missing_name_raises(self, client):
        with patch.object(client, 'get_task', return_value={'gid': '123'}):
            with pytest.raises(APIError, match="has no name"):
                client.get_task_title('123')


class TestRetryLogic:

    @patch('time.sleep')
    @patch('requests.Session.request')
    def test_retry_after_rate_limit_429(self, mock_request, mock_sleep, client):
        mock_request.side_effect = [
            make_response(status_code=429, headers={'Retry-After': '3'}),
            make_response(json_data={'data': {'name': 'Fix bug'}}),
        ]

        assert client.get_task_title('123') == 'Fix bug'
        assert mock_request.call_count == 2
        mock_sleep.assert_called_once_with(3.0)

    @patch('time.sleep')
    @patch('requests.Session.request')
    def test_rate_limit_exhausted(self, mock_request, mock_sleep, client):
        mock_request.return_value = make_response(status_code=429, headers={'Retry-After': '1'})

        with pytest.raises(APIError, match="rate limit exceeded"):
            client.get_task('123')

        assert mock_request.call_count == 3

    @patch('time.sleep')
    @patch('requests.Session.request')
    def test_server_error_retried(self, mock_request, mock_sleep, client):
        mock_request.side_effect = [
            make_response(status_code=503),
            make_response(json_data={'data': {'name': 'Fix bug'}}),
        ]

        assert client.get_task_title('123') == 'Fix bug'
        mock_sleep.assert_called_once_with(1)

    @patch('time.sleep')
    @patch('requests.Session.request')
    def test_server_error_exhausted_maps_to_api_error(self, mock_request, mock_sleep, client):
        mock_request.return_value = make_response(status_code=500)

        with pytest.raises(APIError) as exc_info:
            client.get_task('123')

        assert exc_info.value.status_code == 500
        assert mock_request.call_count == 3

    @pytest.mark.parametrize("headers,status_code,expected", [
        ({'Retry-After': '7'}, 429, 7.0),
        ({'Retry-After': 'soon'}, 429, 60),
        ({}, 429, 60),
        ({}, 500, 0),
    ])
    def test_calculate_wait_time(self, client, headers, status_code, expected):
        assert client._calculate_wait_time(headers, status_code) == expected
