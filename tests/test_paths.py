import os
import tempfile
import unittest
from pathlib import Path

from l2mp3.paths import extension_of, sanitize_title, to_destination, to_relative, track_file_name


class TestRelativePaths(unittest.TestCase):
    def test_nested_file_keeps_its_subdirectories(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td) / "Album"
            f = root / "CD1" / "extras" / "01.flac"
            f.parent.mkdir(parents=True)
            f.write_bytes(b"")
            self.assertEqual(to_relative(f, root), Path("CD1/extras/01.flac"))

    def test_file_outside_root_is_flattened_to_its_name(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td) / "Album"
            root.mkdir()
            stray = Path(td) / "elsewhere" / "c.flac"
            stray.parent.mkdir()
            stray.write_bytes(b"")
            self.assertEqual(to_relative(stray, root), Path("c.flac"))

    def test_symlinked_root_is_resolved_on_both_sides(self):
        with tempfile.TemporaryDirectory() as td:
            real = Path(td) / "real"
            (real / "a").mkdir(parents=True)
            (real / "a" / "x.wav").write_bytes(b"")
            link = Path(td) / "link"
            os.symlink(real, link)
            self.assertEqual(to_relative(real / "a" / "x.wav", link), Path("a/x.wav"))
            self.assertEqual(to_relative(link / "a" / "x.wav", real), Path("a/x.wav"))

    def test_root_itself_degrades_to_name(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td) / "Album"
            root.mkdir()
            self.assertEqual(to_relative(root, root), Path("Album"))


class TestDestinationPaths(unittest.TestCase):
    def test_extension_swapped_and_subdirs_preserved(self):
        out = Path("/out")
        self.assertEqual(to_destination(Path("a/b/c.flac"), out, "mp3"), Path("/out/a/b/c.mp3"))

    def test_flattened_stray_lands_at_output_root(self):
        self.assertEqual(to_destination(Path("c.flac"), Path("/out"), "mp3"), Path("/out/c.mp3"))

    def test_none_keeps_name(self):
        self.assertEqual(to_destination(Path("scans/back.tif"), Path("/out"), None), Path("/out/scans/back.tif"))

    def test_only_final_extension_replaced(self):
        self.assertEqual(to_destination(Path("live.2001.flac"), Path("/o"), "mp3"), Path("/o/live.2001.mp3"))

    def test_extensionless_file_gains_extension(self):
        self.assertEqual(to_destination(Path("d/cover"), Path("/o"), "jpg"), Path("/o/d/cover.jpg"))

    def test_extension_of_is_lower_case_without_dot(self):
        self.assertEqual(extension_of(Path("A/B.FLAC")), "flac")
        self.assertEqual(extension_of(Path("README")), "")


class TestTrackNames(unittest.TestCase):
    def test_hostile_characters_become_underscores(self):
        self.assertEqual(sanitize_title('Main/Theme'), "Main_Theme")
        self.assertEqual(sanitize_title('a\\b:c*d?e"f<g>h|i'), "a_b_c_d_e_f_g_h_i")

    def test_surrounding_whitespace_trimmed(self):
        self.assertEqual(sanitize_title("  Intro "), "Intro")

    def test_track_file_name_is_zero_padded(self):
        self.assertEqual(track_file_name(1, "Intro", "mp3"), "01 - Intro.mp3")
        self.assertEqual(track_file_name(12, "Coda", "mp3"), "12 - Coda.mp3")

    def test_long_titles_fit_one_segment(self):
        name = track_file_name(3, "x" * 400, "mp3")
        self.assertEqual(len(name), 255)
        self.assertTrue(name.startswith("03 - "))
        self.assertTrue(name.endswith(".mp3"))

    def test_non_ascii_titles_are_capped_in_bytes(self):
        name = track_file_name(1, "Я" * 200, "mp3")
        self.assertEqual(len(name.encode("utf-8")), 255)
        self.assertEqual(name, "01 - " + "Я" * 123 + ".mp3")

    def test_multibyte_cut_stays_on_a_character_boundary(self):
        name = track_file_name(2, "a" + "Я" * 200, "mp3")
        self.assertEqual(name, "02 - a" + "Я" * 122 + ".mp3")
        self.assertLessEqual(len(name.encode("utf-8")), 255)


if __name__ == "__main__":
    unittest.main()
