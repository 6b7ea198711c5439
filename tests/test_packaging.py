import re
from unittest import TestCase

from tests import get_test_dir


class TestPackaging(TestCase):
    def test_readme_is_a_real_file(self):
        root = get_test_dir().parent
        pyproject = (root / "pyproject.toml").read_text()

        readme = re.search(r'^readme = "(.+)"$', pyproject, re.MULTILINE)

        self.assertIsNotNone(readme)
        self.assertEqual(readme.group(1), "README.md")
        self.assertTrue((root / readme.group(1)).is_file())
