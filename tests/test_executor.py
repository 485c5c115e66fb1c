import sys
import os
import unittest

# Add project root to path
sys.path.append(os.getcwd())

from actionbot.memory.database import generate_record_id
from actionbot.platforms.twitter.actions.content import ActionContentGenerator
from actionbot.platforms.twitter.actions.decision import ActionDecision, DecidedCandidate
from actionbot.platforms.twitter.actions.executor import ActionExecutor
from actionbot.platforms.twitter.actions.reply import QuoteAction, _GeneratedPostAction
from tests.fakes import FakeLLM, FakePlatformClient, TempDatabaseMixin, make_candidate, make_persona


class TestActionExecutor(TempDatabaseMixin, unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        super().setUp()
        self.client = FakePlatformClient()
        self.llm = FakeLLM('"Nice benchmark.\\nWould love to see p99 too."')
        self.generator = ActionContentGenerator(self.client, self.llm, self.db, make_persona())
        self.executor = ActionExecutor(self.client, self.db, self.generator, "agent-1")

    def decided(self, candidate_id="42", **flags):
        return DecidedCandidate(candidate=make_candidate(candidate_id), decision=ActionDecision(**flags))

    async def test_executes_all_flagged_actions(self):
        result = await self.executor.execute(self.decided(like=True, retweet=True, quote=True, reply=True))

        self.assertEqual(result.executed, ["like", "retweet", "quote", "reply"])
        self.assertEqual(result.failed, [])
        self.assertEqual([c[0] for c in self.client.side_effects()], ["like", "retweet", "quote", "reply"])
        self.assertEqual(result.record.actions, "like,retweet,quote,reply")

    async def test_failure_isolated_per_action(self):
        self.client.errors['reply'] = RuntimeError("reply rejected")
        self.client.errors['like'] = RuntimeError("like rejected")

        result = await self.executor.execute(self.decided(like=True, retweet=True, reply=True))

        self.assertEqual(result.executed, ["retweet"])
        self.assertEqual(result.failed, ["like", "reply"])
        stored = self.db.get_execution_record(generate_record_id("42", "agent-1"))
        self.assertEqual(stored.actions, "retweet")

    async def test_declined_candidate_still_recorded(self):
        result = await self.executor.execute(self.decided())

        self.assertEqual(result.executed, [])
        self.assertEqual(self.client.side_effects(), [])
        stored = self.db.get_execution_record(generate_record_id("42", "agent-1"))
        self.assertIsNotNone(stored)
        self.assertEqual(stored.actions, "")
        self.assertEqual(stored.action_list, [])

    async def test_record_fields(self):
        candidate = make_candidate("42", "benchmarks!", author_id="u9")
        record = self.executor.record_execution(candidate, ["like", "reply"])

        stored = self.db.get_execution_record(record.id)
        self.assertEqual(stored.id, generate_record_id("42", "agent-1"))
        self.assertEqual(stored.agent_id, "agent-1")
        self.assertEqual(stored.user_id, "u9")
        self.assertEqual(stored.text, "benchmarks!")
        self.assertEqual(stored.url, candidate.permalink)
        self.assertEqual(stored.source, "twitter")
        self.assertEqual(stored.action_list, ["like", "reply"])
        self.assertEqual(stored.created_at, candidate.created_at)

    async def test_record_written_once(self):
        candidate = make_candidate("42")
        self.executor.record_execution(candidate, ["like"])
        self.executor.record_execution(candidate, ["reply"])

        records = self.db.get_recent_execution_records("agent-1")
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].actions, "like")

    async def test_generated_text_is_cleaned_and_cached(self):
        result = await self.executor.execute(self.decided(quote=True))

        quote_call = self.client.side_effects('quote')[0]
        self.assertEqual(quote_call[2], "Nice benchmark.\n\nWould love to see p99 too.")
        cached = self.db.get("twitter/quote_generation_42.txt")
        self.assertEqual(cached["text"], quote_call[2])
        self.assertIn("From @alice", cached["context"])
        self.assertEqual(result.results[0].content, quote_call[2])

    async def test_empty_generation_fails_action(self):
        self.llm.responses = '""'

        result = await self.executor.execute(self.decided(like=True, reply=True))

        self.assertEqual(result.executed, ["like"])
        self.assertEqual(result.failed, ["reply"])
        self.assertEqual(self.client.side_effects('reply'), [])


class TestActionContentGenerator(TempDatabaseMixin, unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        super().setUp()
        self.root = make_candidate("1", "Is asyncio fast enough?", author_handle="bob")
        self.middle = make_candidate("2", "Depends on the workload.", author_handle="carol", in_reply_to_id="1")
        self.quoted = make_candidate("9", "x" * 800, author_handle="dave")
        self.client = FakePlatformClient(posts={"1": self.root, "2": self.middle, "9": self.quoted})
        self.generator = ActionContentGenerator(
            self.client, FakeLLM("ok"), self.db, make_persona(),
            quoted_max_chars=50, thread_max_depth=10
        )

    async def test_thread_oldest_first(self):
        leaf = make_candidate("3", "uvloop helps.", in_reply_to_id="2")

        thread = await self.generator.build_thread(leaf)

        self.assertEqual([t.id for t in thread], ["1", "2", "3"])

    async def test_thread_depth_limit(self):
        self.generator.thread_max_depth = 2
        leaf = make_candidate("3", "uvloop helps.", in_reply_to_id="2")

        thread = await self.generator.build_thread(leaf)

        self.assertEqual([t.id for t in thread], ["2", "3"])

    async def test_fetched_posts_are_cached(self):
        leaf = make_candidate("3", "uvloop helps.", in_reply_to_id="2")
        await self.generator.build_thread(leaf)
        await self.generator.build_thread(leaf)

        lookups = [c for c in self.client.calls if c[0] == 'get_candidate']
        self.assertEqual(lookups, [('get_candidate', "2"), ('get_candidate', "1")])
        self.assertEqual(self.db.get("twitter/tweets/2")["author_handle"], "carol")

    async def test_missing_parent_ends_thread(self):
        self.client.errors['get_candidate'] = RuntimeError("not found")
        leaf = make_candidate("3", "uvloop helps.", in_reply_to_id="2")

        thread = await self.generator.build_thread(leaf)

        self.assertEqual([t.id for t in thread], ["3"])

    def test_cached_posts_expire(self):
        self.generator.cache_candidate(self.root)
        self.assertEqual(self.db.get("twitter/tweets/1")["id"], "1")

        self.generator.cache_ttl = -1
        self.generator.cache_candidate(self.root)
        self.assertIsNone(self.db.get("twitter/tweets/1"))

    async def test_quoted_content_truncated(self):
        candidate = make_candidate("5", "look at this", quoted_id="9")

        content = await self.generator.quoted_content(candidate)

        self.assertIn("Quoted Tweet from @dave:", content)
        self.assertTrue(content.endswith("x" * 50))
        self.assertNotIn("x" * 51, content)

    async def test_image_descriptions(self):
        class Vision:
            async def describe(self, url):
                if url.endswith("broken.jpg"):
                    raise RuntimeError("404")
                return {"title": "Chart", "description": "Latency by version"}

        self.generator.vision = Vision()
        candidate = make_candidate("5", photos=("https://img/a.jpg", "https://img/broken.jpg"))

        descriptions = await self.generator.describe_images(candidate)
        text = self.generator.format_image_descriptions(descriptions)

        self.assertEqual(len(descriptions), 1)
        self.assertIn("Image 1: Chart - Latency by version", text)


class TestGeneratedPostActions(unittest.TestCase):
    def test_post_must_be_implemented(self):
        class DraftAction(_GeneratedPostAction):
            action_type = 'draft'

        generator = ActionContentGenerator(FakePlatformClient(), FakeLLM("ok"), None, make_persona())
        with self.assertRaises(TypeError):
            DraftAction(FakePlatformClient(), generator)

        action = QuoteAction(FakePlatformClient(), generator)
        self.assertEqual(action.action_type, 'quote')


if __name__ == '__main__':
    unittest.main()
