"""
Integration tests for the GitHub API client.

Requests are intercepted at ``requests.Session.request``.
"""

import pytest
import requests
from datetime import datetime
from unittest.mock import patch

from gh_review_tools.github.client import GitHubClient, GitHubAPIError, RateLimitExceeded
from helpers import make_response, thread_node


class TestGitHubClient:
    """Test GitHub API client functionality."""

    def setup_method(self):
        """Set up test fixtures."""
        self.client = GitHubClient("test_token")

    def test_client_initialization(self):
        """Test client defaults and authentication headers."""
        assert self.client.base_url == "https://api.github.com"
        assert self.client.headers["Authorization"] == "token test_token"
        assert self.client.headers["Accept"] == "application/vnd.github.v3+json"

    def test_client_requires_token(self):
        """Test that an empty token is rejected."""
        with pytest.raises(ValueError):
            GitHubClient("")

    @patch('requests.Session.request')
    def test_authentication_success(self, mock_request):
        """Test successful GitHub authentication."""
        mock_request.return_value = make_response(200, {'login': 'testuser', 'id': 12345})

        success, user_info = self.client.test_authentication()

        assert success is True
        assert user_info['login'] == 'testuser'
        method, url = mock_request.call_args[0]
        assert method == 'GET'
        assert url == "https://api.github.com/user"

    @patch('requests.Session.request')
    def test_authentication_failure(self, mock_request):
        """Test failed GitHub authentication."""
        mock_request.return_value = make_response(401, {'message': 'Bad credentials'}, headers={})

        success, user_info = self.client.test_authentication()

        assert success is False
        assert user_info == {}

    @patch('requests.Session.request')
    def test_api_error_carries_message(self, mock_request):
        """Test that API errors keep the status code and GitHub's message."""
        mock_request.return_value = make_response(404, {'message': 'Not Found'}, headers={})

        with pytest.raises(GitHubAPIError) as exc_info:
            self.client.get_pull_request("owner", "repository", 123)

        assert exc_info.value.status_code == 404
        assert exc_info.value.api_message == "Not Found"

    @patch('requests.Session.request')
    def test_transport_failure(self, mock_request):
        """Test that connection errors become status-less API errors."""
        mock_request.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(GitHubAPIError) as exc_info:
            self.client.get_authenticated_user()

        assert exc_info.value.status_code is None

    @patch('requests.Session.request')
    def test_rate_limit_exceeded_on_429(self, mock_request):
        """Test rate limit handling for 429 responses."""
        mock_request.return_value = make_response(429, {'message': 'Too many'}, headers={
            'X-RateLimit-Remaining': '0',
            'X-RateLimit-Reset': '1700000000',
        })

        with pytest.raises(RateLimitExceeded) as exc_info:
            self.client.get_authenticated_user()

        assert exc_info.value.reset_time == datetime.fromtimestamp(1700000000)

    @patch('requests.Session.request')
    def test_rate_limit_exceeded_on_403_with_zero_remaining(self, mock_request):
        """Test rate limit handling for 403 responses with an exhausted budget."""
        mock_request.return_value = make_response(403, {'message': 'API rate limit exceeded'}, headers={
            'X-RateLimit-Remaining': '0',
            'X-RateLimit-Reset': '1700000000',
        })

        with pytest.raises(RateLimitExceeded):
            self.client.get_pull_request("octocat", "hello-world", 7)

    @patch('requests.Session.request')
    def test_forbidden_without_rate_limit_is_plain_error(self, mock_request):
        """Test that a 403 with budget left is not treated as rate limiting."""
        mock_request.return_value = make_response(403, {'message': 'Resource not accessible'}, headers={
            'X-RateLimit-Remaining': '4000',
        })

        with pytest.raises(GitHubAPIError) as exc_info:
            self.client.get_pull_request("octocat", "secret", 1)

        assert not isinstance(exc_info.value, RateLimitExceeded)

    @patch('requests.Session.request')
    def test_exhausted_budget_blocks_next_request(self, mock_request):
        """Test that requests are refused locally once the budget is spent."""
        reset = int(datetime.now().timestamp()) + 3600
        mock_request.return_value = make_response(200, {'login': 'octocat'}, headers={
            'X-RateLimit-Remaining': '0',
            'X-RateLimit-Reset': str(reset),
        })

        self.client.get_authenticated_user()
        with pytest.raises(RateLimitExceeded):
            self.client.get_authenticated_user()

        assert mock_request.call_count == 1

    @patch('requests.Session.request')
    def test_rate_limit_status_allowed_with_exhausted_budget(self, mock_request):
        """Test that /rate_limit is still queried after the budget is spent."""
        reset = int(datetime.now().timestamp()) + 3600
        headers = {'X-RateLimit-Remaining': '0', 'X-RateLimit-Reset': str(reset)}
        payload = {'resources': {'core': {'limit': 5000, 'remaining': 0, 'reset': reset}}}
        mock_request.side_effect = [
            make_response(200, {'login': 'octocat'}, headers=headers),
            make_response(200, payload, headers=headers),
        ]

        self.client.get_authenticated_user()
        status = self.client.get_rate_limit_status()

        assert status['resources']['core']['remaining'] == 0
        assert mock_request.call_count == 2

    @patch('requests.Session.request')
    def test_rate_limit_headers_tracked(self, mock_request):
        """Test that rate limit headers update the client state."""
        mock_request.return_value = make_response(200, {}, headers={
            'X-RateLimit-Remaining': '4321',
            'X-RateLimit-Reset': '1700000000',
        })

        self.client.get_rate_limit_status()

        assert self.client.rate_limit_remaining == 4321
        assert self.client.rate_limit_reset == datetime.fromtimestamp(1700000000)

    @patch('requests.Session.request')
    def test_token_scopes(self, mock_request):
        """Test reading scopes from the X-OAuth-Scopes header."""
        mock_request.return_value = make_response(200, None, headers={'X-OAuth-Scopes': 'repo, read:org'})

        assert self.client.get_token_scopes() == ['repo', 'read:org']
        assert mock_request.call_args[0][0] == 'HEAD'

    @patch('requests.Session.request')
    def test_token_scopes_absent(self, mock_request):
        """Test that a missing scopes header yields None."""
        mock_request.return_value = make_response(200, None, headers={})

        assert self.client.get_token_scopes() is None

    @patch('requests.Session.request')
    def test_graphql_errors_raise(self, mock_request):
        """Test that GraphQL errors raise even on HTTP 200."""
        mock_request.return_value = make_response(200, {
            'data': None,
            'errors': [{'message': 'Could not resolve to a node with the global id'}],
        })

        with pytest.raises(GitHubAPIError) as exc_info:
            self.client.graphql("query { node(id: \"x\") { id } }")

        assert "Could not resolve" in str(exc_info.value)

    @patch('requests.Session.request')
    def test_review_threads_paginate(self, mock_request):
        """Test that review threads are fetched across pages."""
        first_page = {'data': {'repository': {'pullRequest': {'reviewThreads': {
            'pageInfo': {'hasNextPage': True, 'endCursor': 'CURSOR1'},
            'nodes': [thread_node('T1'), thread_node('T2', resolved=True)],
        }}}}}
        second_page = {'data': {'repository': {'pullRequest': {'reviewThreads': {
            'pageInfo': {'hasNextPage': False, 'endCursor': None},
            'nodes': [thread_node('T3')],
        }}}}}
        mock_request.side_effect = [make_response(200, first_page), make_response(200, second_page)]

        threads = self.client.get_review_threads("octocat", "hello-world", 7)

        assert [t.id for t in threads] == ['T1', 'T2', 'T3']
        assert threads[1].is_resolved is True
        second_call_variables = mock_request.call_args_list[1][1]['json']['variables']
        assert second_call_variables['cursor'] == 'CURSOR1'
        assert second_call_variables['number'] == 7

    @patch('requests.Session.request')
    def test_review_threads_missing_pull_request(self, mock_request):
        """Test that a null pullRequest is reported as not found."""
        mock_request.return_value = make_response(200, {'data': {'repository': {'pullRequest': None}}})

        with pytest.raises(GitHubAPIError) as exc_info:
            self.client.get_review_threads("octocat", "hello-world", 999)

        assert exc_info.value.status_code == 404

    @patch('requests.Session.request')
    def test_resolve_review_thread(self, mock_request):
        """Test the resolveReviewThread mutation."""
        mock_request.return_value = make_response(200, {
            'data': {'resolveReviewThread': {'thread': {'id': 'T1', 'isResolved': True}}},
        })

        assert self.client.resolve_review_thread('T1') is True
        payload = mock_request.call_args[1]['json']
        assert payload['variables'] == {'threadId': 'T1'}
        assert 'resolveReviewThread' in payload['query']
