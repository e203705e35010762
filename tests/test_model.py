import unittest

from trimline.errors import ValidationError
from trimline.model import (
    TRACK_AUDIO,
    TRACK_TEXT,
    TRACK_VIDEO,
    Composition,
    Element,
    MediaContent,
    TextContent,
    Track,
)


def media(eid="e1", start=0.0, duration=10.0, trim_start=0.0, trim_end=0.0):
    return Element(
        id=eid,
        name=f"clip {eid}",
        kind=MediaContent(media_id="m1"),
        start_time=start,
        duration=duration,
        trim_start=trim_start,
        trim_end=trim_end,
    )


class TestElement(unittest.TestCase):
    def test_effective_span(self):
        e = media(start=2.0, duration=10.0, trim_start=1.0, trim_end=3.0)
        self.assertAlmostEqual(e.effective_duration, 6.0)
        self.assertAlmostEqual(e.effective_end, 8.0)

    def test_contains_strictly_excludes_edges(self):
        e = media(start=2.0, duration=4.0)
        self.assertFalse(e.contains_strictly(2.0))
        self.assertFalse(e.contains_strictly(6.0))
        self.assertTrue(e.contains_strictly(2.5))
        self.assertFalse(e.contains_strictly(7.0))

    def test_trim_setter_rejects_collapse(self):
        e = media(duration=5.0, trim_end=2.0)
        err = e.set_trim_start(3.0)
        self.assertIsInstance(err, ValidationError)
        self.assertAlmostEqual(e.trim_start, 0.0)

        self.assertIsNone(e.set_trim_start(2.5))
        self.assertAlmostEqual(e.effective_duration, 0.5)

    def test_setters_reject_negative_values(self):
        e = media()
        self.assertIsInstance(e.set_trim_end(-0.1), ValidationError)
        self.assertIsInstance(e.set_start_time(-1.0), ValidationError)
        self.assertIsInstance(e.set_duration(0.0), ValidationError)
        self.assertAlmostEqual(e.start_time, 0.0)
        self.assertAlmostEqual(e.duration, 10.0)

    def test_duration_setter_respects_trims(self):
        e = media(duration=10.0, trim_start=4.0, trim_end=4.0)
        self.assertIsInstance(e.set_duration(8.0), ValidationError)
        self.assertIsNone(e.set_duration(12.0))
        self.assertAlmostEqual(e.effective_duration, 4.0)

    def test_kind_accessors(self):
        m = media()
        t = Element(id="t", name="t", kind=TextContent(content="hi"), start_time=0.0, duration=3.0)
        self.assertEqual(m.media_id, "m1")
        self.assertTrue(m.is_media)
        self.assertIsNone(t.media_id)
        self.assertTrue(t.is_text)


class TestTrack(unittest.TestCase):
    def test_insert_keeps_start_order(self):
        t = Track(id="v", name="V1", type=TRACK_VIDEO)
        self.assertIsNone(t.insert(media("b", start=5.0)))
        self.assertIsNone(t.insert(media("a", start=0.0)))
        self.assertIsNone(t.insert(media("c", start=5.0)))
        self.assertEqual([e.id for e in t.elements], ["a", "b", "c"])

    def test_insert_rejects_wrong_kind_and_duplicate_id(self):
        text_track = Track(id="t", name="T1", type=TRACK_TEXT)
        self.assertIsInstance(text_track.insert(media()), ValidationError)

        v = Track(id="v", name="V1", type=TRACK_VIDEO)
        self.assertIsNone(v.insert(media("a")))
        self.assertIsInstance(v.insert(media("a", start=20.0)), ValidationError)
        self.assertEqual(len(v.elements), 1)

    def test_remove_and_order_query(self):
        t = Track(id="a", name="A1", type=TRACK_AUDIO)
        t.insert(media("x", start=3.0))
        t.insert(media("y", start=1.0))
        self.assertEqual([e.id for e in t.elements], ["y", "x"])
        t.elements[0].start_time = 9.0  # "y" moved without re-sorting
        self.assertEqual([e.id for e in t.elements_ordered_by_start()], ["x", "y"])
        removed = t.remove("x")
        self.assertEqual(removed.id, "x")
        self.assertIsNone(t.remove("x"))


class TestComposition(unittest.TestCase):
    def test_add_track_names(self):
        c = Composition()
        v1 = c.add_track("video")
        v2 = c.add_track("video")
        a1 = c.add_track("audio")
        t1 = c.add_track("text")
        self.assertEqual([v1.name, v2.name, a1.name, t1.name], ["V1", "V2", "A1", "T1"])
        self.assertIs(c.get_track(v2.id), v2)
        self.assertIsNone(c.get_track("missing"))

    def test_find_element_across_tracks(self):
        c = Composition()
        v = c.add_track("video")
        a = c.add_track("audio")
        v.insert(media("v-el"))
        a.insert(media("a-el"))
        track, element = c.find_element("a-el")
        self.assertIs(track, a)
        self.assertEqual(element.id, "a-el")
        self.assertIsNone(c.find_element("nope"))
        self.assertNotIn(c.mint_id(), c.element_ids())


if __name__ == "__main__":
    unittest.main()
