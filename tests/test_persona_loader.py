import sys
import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

# Add project root to path
sys.path.append(os.getcwd())

from actionbot.persona.persona_loader import PersonaLoader


class TestPersonaLoader(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        os.makedirs(os.path.join(self.tmpdir, "ada"))
        with open(os.path.join(self.tmpdir, "ada", "identity.yaml"), "w", encoding="utf-8") as f:
            f.write(
                "name: Ada\n"
                "bio:\n  - Runtime engineer.\n  - Writes benchmarks.\n"
                "topics: [python, databases]\n"
                "style:\n  all: [be concrete]\n  post: [one idea per post]\n"
                "templates:\n  twitter_action: 'custom {current_tweet}'\n"
            )
        self.patcher = patch('actionbot.persona.persona_loader.PERSONAS_DIR', self.tmpdir)
        self.patcher.start()

    def tearDown(self):
        self.patcher.stop()
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_load_persona(self):
        persona = PersonaLoader.load_persona("ada")

        self.assertEqual(persona.id, "ada")
        self.assertEqual(persona.name, "Ada")
        self.assertEqual(persona.bio, "Runtime engineer. Writes benchmarks.")
        self.assertEqual(persona.topics, ["python", "databases"])
        self.assertEqual(persona.post_directions, ["be concrete", "one idea per post"])
        self.assertEqual(persona.directions_text, "- be concrete\n- one idea per post")
        self.assertEqual(persona.templates["twitter_action"], "custom {current_tweet}")

    def test_missing_persona(self):
        with self.assertRaises(FileNotFoundError):
            PersonaLoader.load_persona("nobody")

    def test_empty_identity(self):
        os.makedirs(os.path.join(self.tmpdir, "empty"))
        with self.assertRaises(ValueError):
            PersonaLoader.load_persona("empty")

    def test_bundled_example_persona(self):
        with patch('actionbot.persona.persona_loader.PERSONAS_DIR', os.path.join(os.getcwd(), "personas")):
            persona = PersonaLoader.load_persona("example")
        self.assertEqual(persona.name, "Ada")
        self.assertTrue(persona.post_directions)


if __name__ == '__main__':
    unittest.main()
