from __future__ import annotations

import unittest

from tests.helpers.pandoc_ast import code_block, make_doc, para

from mapblocks.converter import TransformOptions, transform_document
from mapblocks.wordcount import (
    WORD_COUNT_KEY,
    attach_word_count,
    attach_word_count_meta,
    count_words,
    render_word_count,
)


class TestCountWords(unittest.TestCase):
    def test_whitespace_delimited_tokens(self):
        self.assertEqual(count_words("one two  three\nfour\tfive"), 5)
        self.assertEqual(count_words("  padded words  "), 2)

    def test_blank_documents_count_one(self):
        self.assertEqual(count_words(""), 1)
        self.assertEqual(count_words("   \n\t "), 1)

    def test_markup_counts_as_words(self):
        self.assertEqual(count_words("# Title\n\n```leaflet\nid: x\n```"), 6)


class TestWordCountMetadata(unittest.TestCase):
    def test_attach_writes_fixed_key(self):
        data = {"title": "kept"}
        self.assertEqual(attach_word_count("a b c", data), 3)
        self.assertEqual(data, {"title": "kept", WORD_COUNT_KEY: 3})

    def test_attach_to_pandoc_meta(self):
        doc = make_doc(para("x"))
        attach_word_count_meta(doc, 12)
        self.assertEqual(doc["meta"]["wordcount"], {"t": "MetaString", "c": "12"})

    def test_render_word_count(self):
        self.assertEqual(render_word_count({"wordcount": 42}), '<span class="wc">~42 words</span>')
        self.assertEqual(render_word_count({}), '<span class="wc">~0 words</span>')


class TestTransformDocument(unittest.TestCase):
    def test_runs_both_passes(self):
        text = "Intro text\n\n```leaflet\nid: m\n```\n"
        doc = make_doc(para("Intro text"), code_block("leaflet", "id: m"))
        report = transform_document(doc, text)
        self.assertEqual(report.blocks_rewritten, 1)
        self.assertEqual(report.wordcount, 6)
        self.assertEqual(report.data, {"wordcount": 6})
        self.assertEqual(doc["meta"]["wordcount"]["c"], "6")
        self.assertEqual(report.warnings, [])

    def test_word_count_can_be_disabled(self):
        doc = make_doc(para("x"))
        report = transform_document(doc, "x y", TransformOptions(word_count=False))
        self.assertIsNone(report.wordcount)
        self.assertNotIn("wordcount", doc["meta"])

    def test_no_text_means_no_word_count(self):
        doc = make_doc(para("x"))
        report = transform_document(doc)
        self.assertIsNone(report.wordcount)
        self.assertEqual(report.data, {})


if __name__ == "__main__":
    unittest.main()
