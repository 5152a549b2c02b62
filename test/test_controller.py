#!/usr/bin/env python3
import os
import sys
import unittest
from unittest.mock import Mock, patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, os.path.dirname(__file__))

from relay.controller import create_app
from relay.routing import WebhookRoute, WebhookRouter
from payloads import make_merge_request_payload, make_push_payload

WEBHOOK = 'https://discord.com/api/webhooks/1/token'


def make_response(status_code):
    resp = Mock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    resp.headers = {}
    resp.text = ''
    return resp


class TestWebhookEndpoint(unittest.TestCase):
    def setUp(self):
        router = WebhookRouter([WebhookRoute('team-a', WEBHOOK)])
        self.app = create_app(router=router)
        self.client = self.app.test_client()
        patcher = patch('relay.services.requests.post')
        self.mock_post = patcher.start()
        self.addCleanup(patcher.stop)
        self.mock_post.return_value = make_response(204)

    def test_push_is_forwarded(self):
        resp = self.client.post('/webhook', json=make_push_payload())
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json(), {'message': 'Webhook processed successfully.'})
        self.mock_post.assert_called_once()
        args, kwargs = self.mock_post.call_args
        self.assertEqual(args[0], WEBHOOK)
        self.assertEqual(kwargs['json']['content'], 'New push event in **Diaspora**!')

    def test_merge_request_is_forwarded(self):
        resp = self.client.post('/webhook', json=make_merge_request_payload(state='merged'))
        self.assertEqual(resp.status_code, 200)
        self.mock_post.assert_called_once()
        self.assertIn('has been **merged**', self.mock_post.call_args.kwargs['json']['content'])

    def test_unsupported_event_kind(self):
        resp = self.client.post('/webhook', json={'object_kind': 'note', 'project': {'namespace': 'team-a'}})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json(), {'message': 'Event type not supported'})
        self.mock_post.assert_not_called()

    def test_non_string_object_kind_is_unsupported(self):
        for kind in (['push'], {'kind': 'push'}, 42):
            with self.subTest(kind=kind):
                resp = self.client.post('/webhook', json={'object_kind': kind, 'project': {'namespace': 'team-a'}})
                self.assertEqual(resp.status_code, 400)
                self.assertEqual(resp.get_json(), {'message': 'Event type not supported'})
        self.mock_post.assert_not_called()

    def test_missing_object_kind(self):
        resp = self.client.post('/webhook', json={'project': {'namespace': 'team-a'}})
        self.assertEqual(resp.status_code, 400)
        self.mock_post.assert_not_called()

    def test_unknown_namespace_is_dropped_with_200(self):
        payload = make_push_payload()
        payload['project']['namespace'] = 'team-b'
        resp = self.client.post('/webhook', json=payload)
        self.assertEqual(resp.status_code, 200)
        self.mock_post.assert_not_called()
        self.assertEqual(self.app.extensions['relay_metrics'].delivery_counts()['skipped'], 1)

    def test_namespace_match_is_case_sensitive(self):
        payload = make_push_payload()
        payload['project']['namespace'] = 'Team-A'
        resp = self.client.post('/webhook', json=payload)
        self.assertEqual(resp.status_code, 200)
        self.mock_post.assert_not_called()

    def test_discord_failure_still_returns_200(self):
        self.mock_post.return_value = make_response(500)
        resp = self.client.post('/webhook', json=make_push_payload())
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json(), {'message': 'Webhook processed successfully.'})
        self.assertEqual(self.app.extensions['relay_metrics'].delivery_counts()['failed'], 1)

    def test_missing_project_is_rejected(self):
        payload = make_push_payload()
        del payload['project']
        resp = self.client.post('/webhook', json=payload)
        self.assertEqual(resp.status_code, 422)
        body = resp.get_json()
        self.assertEqual(body['message'], 'Invalid payload')
        self.assertTrue(any('project' in e for e in body['errors']))
        self.mock_post.assert_not_called()

    def test_missing_commits_is_rejected(self):
        payload = make_push_payload()
        del payload['commits']
        resp = self.client.post('/webhook', json=payload)
        self.assertEqual(resp.status_code, 422)
        self.mock_post.assert_not_called()

    def test_non_json_body(self):
        resp = self.client.post('/webhook', data='not json', content_type='text/plain')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json(), {'message': 'Invalid JSON payload'})
        self.mock_post.assert_not_called()

    def test_request_id_comes_from_gitlab_header(self):
        resp = self.client.post(
            '/webhook',
            json=make_push_payload(),
            headers={'X-Gitlab-Event-UUID': 'abc-123'},
        )
        self.assertEqual(resp.headers['X-Request-ID'], 'abc-123')

    def test_health(self):
        self.client.post('/webhook', json=make_push_payload())
        resp = self.client.get('/health')
        self.assertEqual(resp.status_code, 200)
        body = resp.get_json()
        self.assertEqual(body['status'], 'ok')
        self.assertEqual(body['routes'], 1)
        self.assertEqual(body['deliveries'], {'delivered': 1, 'failed': 0, 'skipped': 0})


    def test_metrics_endpoint(self):
        self.client.post('/webhook', json=make_push_payload())
        self.client.post('/webhook', json={'object_kind': 'note'})
        resp = self.client.get('/metrics')
        self.assertEqual(resp.status_code, 200)
        body = resp.get_data(as_text=True)
        self.assertIn('discord_deliveries_total{outcome="delivered"} 1.0', body)
        self.assertIn('gitlab_events_received_total{object_kind="unsupported",status="400"} 1.0', body)

    def test_metrics_are_isolated_per_app(self):
        self.client.post('/webhook', json=make_push_payload())
        other = create_app(router=WebhookRouter([]))
        self.assertEqual(other.extensions['relay_metrics'].delivery_counts(), {'delivered': 0, 'failed': 0, 'skipped': 0})


if __name__ == '__main__':
    unittest.main()
