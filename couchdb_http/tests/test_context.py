# -*- coding: utf-8 -*-

import threading
import unittest

from couchdb_http.context import InterceptorHandle, RequestContext


class RequestContextTestCase(unittest.TestCase):

    def setUp(self):
        self.first = InterceptorHandle('first')
        self.second = InterceptorHandle('second')
        self.context = RequestContext(connection=None)

    def test_state_is_kept_per_handle(self):
        self.context.set_state(self.first, 'attempt', 1)
        self.assertEqual(self.context.get_state(self.first, 'attempt'), 1)
        self.assertIsNone(self.context.get_state(self.second, 'attempt'))
        self.assertEqual(self.context.get_state(self.second, 'attempt', 0), 0)

    def test_handles_with_same_name_are_distinct(self):
        other = InterceptorHandle('first')
        self.context.set_state(self.first, 'key', 'value')
        self.assertIsNone(self.context.get_state(other, 'key'))

    def test_derived_context_shares_state_and_resets_replay(self):
        self.context.replay_request = True
        self.context.set_state(self.first, 'key', 'value')
        derived = self.context.derive()
        self.assertFalse(derived.replay_request)
        self.assertEqual(derived.get_state(self.first, 'key'), 'value')
        derived.set_state(self.first, 'key', 'changed')
        self.assertEqual(self.context.get_state(self.first, 'key'), 'changed')

    def test_new_contexts_do_not_share_state(self):
        self.context.set_state(self.first, 'key', 'value')
        self.assertIsNone(RequestContext(connection=None).get_state(self.first, 'key'))

    def test_concurrent_set_state(self):
        handles = [InterceptorHandle('h%d' % i) for i in range(20)]

        def store(handle):
            for i in range(200):
                self.context.derive().set_state(handle, i, i)

        threads = [threading.Thread(target=store, args=(h,)) for h in handles]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        for handle in handles:
            self.assertEqual(self.context.get_state(handle, 199), 199)
