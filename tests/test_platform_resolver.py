import unittest
from lockbuilder.utils.platform_resolver import (
    MANYLINUX2014_LIBS,
    NO_REQUIREMENTS,
    glibc_minor,
    resolve_platform,
)

class TestPlatformResolver(unittest.TestCase):

    def test_manylinux1(self):
        requirements = resolve_platform("manylinux1_x86_64")
        self.assertEqual(requirements.patch_policy, "1")
        self.assertIn("libncursesw.so.5", requirements.native_deps)
        self.assertTrue(requirements.needs_patching)

    def test_manylinux2010(self):
        requirements = resolve_platform("manylinux2010_x86_64")
        self.assertEqual(requirements.patch_policy, "2010")
        self.assertIn("libcrypt.so.1", requirements.native_deps)
        self.assertNotIn("libncursesw.so.5", requirements.native_deps)

    def test_compressed_tag_set_uses_first_recognized_member(self):
        requirements = resolve_platform("manylinux_2_17_x86_64.manylinux2014_x86_64")
        self.assertEqual(requirements.patch_policy, "2014")
        self.assertEqual(requirements.native_deps, MANYLINUX2014_LIBS)

    def test_perennial_aliases(self):
        self.assertEqual(resolve_platform("manylinux_2_5_i686").patch_policy, "1")
        self.assertEqual(resolve_platform("manylinux_2_12_x86_64").patch_policy, "2010")
        # Between named generations the older library set applies
        self.assertEqual(resolve_platform("manylinux_2_14_x86_64").patch_policy, "2010")

    def test_newer_perennial_tags(self):
        requirements = resolve_platform("manylinux_2_28_aarch64")
        self.assertEqual(requirements.patch_policy, "2_28")
        self.assertEqual(requirements.native_deps, MANYLINUX2014_LIBS)

    def test_unknown_tags_need_nothing(self):
        for tag in ["source", "any", "win_amd64", "macosx_10_9_x86_64", "musllinux_1_1_x86_64", "linux_x86_64"]:
            with self.subTest(tag=tag):
                self.assertEqual(resolve_platform(tag), NO_REQUIREMENTS)
                self.assertFalse(resolve_platform(tag).needs_patching)

    def test_glibc_minor(self):
        self.assertEqual(glibc_minor("manylinux2014_aarch64"), 17)
        self.assertEqual(glibc_minor("manylinux_2_31_x86_64"), 31)
        self.assertIsNone(glibc_minor("win32"))

if __name__ == "__main__":
    unittest.main()
