import unittest

from trimline.errors import (
    SPLIT_NOT_FOUND,
    SPLIT_OUTSIDE,
    NotApplicable,
    NotFound,
    SplitFailed,
    StaleTargetError,
    ValidationError,
)
from trimline.media import MEDIA_AUDIO, MEDIA_IMAGE, MEDIA_VIDEO, MediaItem
from trimline.model import Composition, Element, MediaContent, TextContent
from trimline.timeline import (
    add_element,
    add_extracted_audio,
    apply_replaced_media,
    can_extract_audio,
    clamp_span_to_source,
    delete_element,
    duplicate_element,
    move_element,
    split_and_keep_left,
    split_and_keep_right,
    split_element,
    toggle_hidden,
    update_element_trim,
)


def clip(eid, start, duration, trim_start=0.0, trim_end=0.0, media_id="m1", name=None):
    return Element(
        id=eid,
        name=name or eid,
        kind=MediaContent(media_id=media_id),
        start_time=start,
        duration=duration,
        trim_start=trim_start,
        trim_end=trim_end,
    )


class TestSplit(unittest.TestCase):
    def setUp(self):
        self.comp = Composition()
        self.v = self.comp.add_track("video")
        add_element(self.comp, self.v.id, clip("a", 2.0, 10.0, trim_start=1.0, trim_end=1.0))

    def test_split_conserves_effective_duration(self):
        right_id = split_element(self.comp, self.v.id, "a", 5.0)
        self.assertIsInstance(right_id, str)
        self.assertEqual(len(self.v.elements), 2)
        left, right = self.v.elements
        self.assertEqual(right.id, right_id)
        self.assertAlmostEqual(left.effective_duration + right.effective_duration, 8.0)
        self.assertAlmostEqual(left.effective_end, 5.0)
        self.assertAlmostEqual(right.start_time, 5.0)
        self.assertAlmostEqual(right.effective_end, 10.0)
        self.assertAlmostEqual(right.trim_start, 4.0)
        self.assertAlmostEqual(left.trim_end, 6.0)

    def test_split_mints_new_ids_and_keeps_lineage(self):
        right_id = split_element(self.comp, self.v.id, "a", 4.0)
        ids = [e.id for e in self.v.elements]
        self.assertNotIn("a", ids)
        self.assertEqual(len(set(ids)), 2)
        self.assertIn(right_id, ids)
        for e in self.v.elements:
            self.assertEqual(e.media_id, "m1")
            self.assertEqual(e.name, "a")
            self.assertAlmostEqual(e.duration, 10.0)

    def test_split_rejects_boundaries_and_outside(self):
        before = self.comp.snapshot()
        for t in (2.0, 10.0, 1.0, 11.0):
            res = split_element(self.comp, self.v.id, "a", t)
            self.assertIsInstance(res, SplitFailed)
            self.assertEqual(res.reason, SPLIT_OUTSIDE)
        self.assertEqual(self.comp.snapshot(), before)

    def test_split_missing_element(self):
        res = split_element(self.comp, self.v.id, "missing", 5.0)
        self.assertIsInstance(res, SplitFailed)
        self.assertEqual(res.reason, SPLIT_NOT_FOUND)

    def test_split_keeps_track_order(self):
        add_element(self.comp, self.v.id, clip("b", 20.0, 2.0))
        split_element(self.comp, self.v.id, "a", 6.0)
        starts = [e.start_time for e in self.v.elements]
        self.assertEqual(starts, sorted(starts))
        self.assertEqual(self.v.elements[-1].id, "b")

    def test_split_and_keep_left(self):
        res = split_and_keep_left(self.comp, self.v.id, "a", 6.0)
        self.assertEqual(res, "a")
        e = self.v.elements[0]
        self.assertAlmostEqual(e.effective_end, 6.0)
        self.assertAlmostEqual(e.start_time, 2.0)
        self.assertEqual(len(self.v.elements), 1)

    def test_split_and_keep_right(self):
        res = split_and_keep_right(self.comp, self.v.id, "a", 6.0)
        self.assertEqual(res, "a")
        e = self.v.elements[0]
        self.assertAlmostEqual(e.start_time, 6.0)
        self.assertAlmostEqual(e.effective_end, 10.0)
        self.assertAlmostEqual(e.trim_start, 5.0)

    def test_split_and_keep_right_keeps_track_sorted(self):
        add_element(self.comp, self.v.id, clip("b", 4.0, 2.0))
        self.assertEqual([e.id for e in self.v.elements], ["a", "b"])
        split_and_keep_right(self.comp, self.v.id, "a", 7.0)
        self.assertEqual([e.id for e in self.v.elements], ["b", "a"])
        starts = [e.start_time for e in self.v.elements]
        self.assertEqual(starts, sorted(starts))

    def test_keep_variants_reject_edges(self):
        self.assertIsInstance(split_and_keep_left(self.comp, self.v.id, "a", 10.0), SplitFailed)
        self.assertIsInstance(split_and_keep_right(self.comp, self.v.id, "a", 2.0), SplitFailed)


class TestDuplicate(unittest.TestCase):
    def test_duplicate_placement_and_name(self):
        comp = Composition()
        v = comp.add_track("video")
        add_element(comp, v.id, clip("a", 1.0, 6.0, trim_start=1.0, trim_end=1.0, name="Intro"))
        v.elements[0].hidden = True

        new_id = duplicate_element(comp, v.id, "a")
        self.assertIsInstance(new_id, str)
        self.assertNotEqual(new_id, "a")
        copy = v.find(new_id)
        self.assertEqual(copy.name, "Intro (copy)")
        self.assertAlmostEqual(copy.start_time, 5.0 + 0.1)
        self.assertEqual(copy.media_id, "m1")
        self.assertAlmostEqual(copy.trim_start, 1.0)
        self.assertAlmostEqual(copy.trim_end, 1.0)
        self.assertTrue(copy.hidden)

        copy.hidden = False
        self.assertTrue(v.find("a").hidden)

    def test_duplicate_text_copies_content(self):
        comp = Composition()
        t = comp.add_track("text")
        add_element(comp, t.id, Element(id="t", name="Title", kind=TextContent("Hello"), start_time=0.0, duration=2.0))
        new_id = duplicate_element(comp, t.id, "t")
        self.assertEqual(t.find(new_id).kind, TextContent("Hello"))

    def test_duplicate_rejects_id_used_on_another_track(self):
        comp = Composition()
        v = comp.add_track("video")
        other = comp.add_track("video")
        add_element(comp, v.id, clip("a", 0.0, 2.0))
        add_element(comp, other.id, clip("taken", 0.0, 2.0))
        comp.mint_id = lambda: "taken"

        res = duplicate_element(comp, v.id, "a")
        self.assertIsInstance(res, ValidationError)
        self.assertEqual([e.id for e in v.elements], ["a"])

    def test_duplicate_missing(self):
        comp = Composition()
        v = comp.add_track("video")
        self.assertIsInstance(duplicate_element(comp, v.id, "nope"), NotFound)


class TestDelete(unittest.TestCase):
    def setUp(self):
        self.comp = Composition()
        self.v = self.comp.add_track("video")
        self.other = self.comp.add_track("video")
        add_element(self.comp, self.v.id, clip("A", 0.0, 5.0))
        add_element(self.comp, self.v.id, clip("B", 5.0, 3.0))
        add_element(self.comp, self.v.id, clip("C", 10.0, 2.0))
        add_element(self.comp, self.other.id, clip("X", 12.0, 2.0))

    def test_ripple_delete_shifts_following_elements(self):
        removed = delete_element(self.comp, self.v.id, "B", ripple=True)
        self.assertEqual(removed.id, "B")
        self.assertAlmostEqual(self.v.find("A").start_time, 0.0)
        self.assertAlmostEqual(self.v.find("C").start_time, 7.0)
        self.assertAlmostEqual(self.other.find("X").start_time, 12.0)

    def test_ripple_closes_adjacent_gap(self):
        add_element(self.comp, self.v.id, clip("D", 12.0, 1.0))
        delete_element(self.comp, self.v.id, "C", ripple=True)
        self.assertAlmostEqual(self.v.find("D").start_time, 10.0)
        self.assertAlmostEqual(self.v.find("B").start_time, 5.0)

    def test_plain_delete_leaves_gap(self):
        delete_element(self.comp, self.v.id, "B", ripple=False)
        self.assertEqual([e.id for e in self.v.elements], ["A", "C"])
        self.assertAlmostEqual(self.v.find("C").start_time, 10.0)

    def test_delete_missing_changes_nothing(self):
        before = self.comp.snapshot()
        self.assertIsInstance(delete_element(self.comp, self.v.id, "Z", ripple=True), NotFound)
        self.assertEqual(self.comp.snapshot(), before)


class TestToggleAndUpdates(unittest.TestCase):
    def test_toggle_hidden_is_idempotent_pair(self):
        comp = Composition()
        v = comp.add_track("video")
        add_element(comp, v.id, clip("a", 1.0, 4.0, trim_start=0.5))
        before = comp.snapshot()
        self.assertTrue(toggle_hidden(comp, v.id, "a"))
        self.assertFalse(toggle_hidden(comp, v.id, "a"))
        self.assertEqual(comp.snapshot(), before)

    def test_update_trim_validates(self):
        comp = Composition()
        v = comp.add_track("video")
        add_element(comp, v.id, clip("a", 0.0, 4.0))
        self.assertIsNotNone(update_element_trim(comp, v.id, "a", 2.0, 2.0))
        self.assertIsNone(update_element_trim(comp, v.id, "a", 1.0, 2.0))
        self.assertAlmostEqual(v.find("a").effective_duration, 1.0)

    def test_move_commits_start_only(self):
        comp = Composition()
        v = comp.add_track("video")
        add_element(comp, v.id, clip("a", 0.0, 4.0, trim_start=1.0))
        add_element(comp, v.id, clip("b", 5.0, 4.0))
        self.assertIsNone(move_element(comp, v.id, "a", 9.0))
        self.assertEqual([e.id for e in v.elements], ["b", "a"])
        self.assertAlmostEqual(v.find("a").trim_start, 1.0)
        self.assertIsNotNone(move_element(comp, v.id, "a", -1.0))
        self.assertAlmostEqual(v.find("a").start_time, 9.0)


class TestReplaceAndExtract(unittest.TestCase):
    def setUp(self):
        self.comp = Composition()
        self.v = self.comp.add_track("video")
        add_element(self.comp, self.v.id, clip("a", 3.0, 10.0, trim_start=2.0, trim_end=3.0))

    def test_clamp_longer_source_keeps_span(self):
        e = self.v.find("a")
        self.assertEqual(clamp_span_to_source(e, 20.0), (10.0, 2.0, 3.0))

    def test_clamp_shorter_source_takes_trim_end_first(self):
        e = self.v.find("a")
        duration, ts, te = clamp_span_to_source(e, 8.0)
        self.assertAlmostEqual(duration, 8.0)
        self.assertAlmostEqual(ts, 2.0)
        self.assertAlmostEqual(te, 1.0)
        self.assertAlmostEqual(duration - ts - te, 5.0)

    def test_clamp_very_short_source_then_trim_start(self):
        e = self.v.find("a")
        duration, ts, te = clamp_span_to_source(e, 4.0)
        self.assertEqual((duration, ts, te), (4.0, 0.0, 0.0))

    def test_apply_replaced_media(self):
        item = MediaItem(id="m2", type=MEDIA_VIDEO, src="b.mp4", duration=6.0)
        self.assertIsNone(apply_replaced_media(self.comp, self.v.id, "a", item))
        e = self.v.find("a")
        self.assertEqual(e.media_id, "m2")
        self.assertAlmostEqual(e.start_time, 3.0)
        self.assertAlmostEqual(e.effective_duration, 5.0)
        self.assertAlmostEqual(e.trim_end, 0.0)
        self.assertAlmostEqual(e.trim_start, 1.0)

    def test_apply_replaced_image_keeps_span(self):
        item = MediaItem(id="img", type=MEDIA_IMAGE, src="p.png", duration=5.0)
        self.assertIsNone(apply_replaced_media(self.comp, self.v.id, "a", item))
        e = self.v.find("a")
        self.assertEqual((e.duration, e.trim_start, e.trim_end), (10.0, 2.0, 3.0))

    def test_apply_replaced_media_stale_and_mismatch(self):
        audio = MediaItem(id="m3", type=MEDIA_AUDIO, src="c.mp3", duration=60.0)
        self.assertIsInstance(apply_replaced_media(self.comp, self.v.id, "a", audio), NotApplicable)
        self.assertEqual(self.v.find("a").media_id, "m1")

        delete_element(self.comp, self.v.id, "a")
        video = MediaItem(id="m4", type=MEDIA_VIDEO, src="d.mp4", duration=60.0)
        self.assertIsInstance(apply_replaced_media(self.comp, self.v.id, "a", video), StaleTargetError)

    def test_extract_checks(self):
        e = self.v.find("a")
        video = MediaItem(id="m1", type=MEDIA_VIDEO, src="a.mp4", duration=10.0)
        audio = MediaItem(id="m1", type=MEDIA_AUDIO, src="a.mp3", duration=10.0)
        self.assertIsNone(can_extract_audio(e, video))
        self.assertIsInstance(can_extract_audio(e, audio), NotApplicable)
        self.assertIsInstance(can_extract_audio(e, None), NotFound)
        text = Element(id="t", name="t", kind=TextContent("x"), start_time=0.0, duration=1.0)
        self.assertIsInstance(can_extract_audio(text, video), NotApplicable)

    def test_add_extracted_audio_creates_audio_track(self):
        item = MediaItem(id="aud", type=MEDIA_AUDIO, src="a.m4a", duration=10.0)
        new_id = add_extracted_audio(self.comp, self.v.id, "a", item)
        found = self.comp.find_element(new_id)
        self.assertIsNotNone(found)
        track, e = found
        self.assertEqual(track.type, "audio")
        self.assertEqual(e.media_id, "aud")
        self.assertEqual((e.start_time, e.duration, e.trim_start, e.trim_end), (3.0, 10.0, 2.0, 3.0))

        toggle_hidden(self.comp, track.id, new_id)
        self.assertFalse(self.v.find("a").hidden)

    def test_add_extracted_audio_rejects_id_in_use(self):
        item = MediaItem(id="aud", type=MEDIA_AUDIO, src="a.m4a", duration=10.0)
        self.comp.mint_id = lambda: "a"
        res = add_extracted_audio(self.comp, self.v.id, "a", item)
        self.assertIsInstance(res, ValidationError)
        self.assertEqual(self.comp.tracks_of_type("audio")[0].elements, [])


if __name__ == "__main__":
    unittest.main()
