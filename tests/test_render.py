from __future__ import annotations

import base64
import json
import unittest

from tests.helpers import pandoc_ast  # noqa: F401  (puts src/ on sys.path)

from mapblocks.render import (
    ViewTransform,
    encode_spec_payload,
    js_literal,
    render_container_html,
    render_map_nodes,
    render_script_html,
)
from mapblocks.spec import parse_map_block


class TestContainerHtml(unittest.TestCase):
    def test_layout_and_label(self):
        spec = parse_map_block("id: world\nheight: 300px\nwidth: 50%")
        markup = render_container_html(spec)
        self.assertTrue(markup.startswith('<div class="qz-leaflet" id="world"'))
        self.assertIn('style="height:300px;width:50%"', markup)
        self.assertIn('aria-label="Interactive map: world"', markup)
        self.assertTrue(markup.endswith("></div>"))

    def test_label_without_id(self):
        markup = render_container_html(parse_map_block(""))
        self.assertIn('aria-label="Interactive map"', markup)
        self.assertIn('id="undefined"', markup)

    def test_attribute_values_are_escaped(self):
        markup = render_container_html(parse_map_block("id: 'a\"><script>x'"))
        self.assertNotIn("<script>", markup)
        self.assertIn("&quot;&gt;&lt;script&gt;", markup)

    def test_data_spec_is_base64_json_of_the_spec(self):
        spec = parse_map_block("id: world\nlat: 1\nlong: 2\nmarker: poi,3,4")
        markup = render_container_html(spec)
        encoded = markup.split('data-spec="', 1)[1].split('"', 1)[0]
        self.assertEqual(encoded, encode_spec_payload(spec))
        decoded = json.loads(base64.b64decode(encoded).decode("utf-8"))
        self.assertEqual(decoded, spec.to_dict())


class TestScriptHtml(unittest.TestCase):
    def test_placeholder_arithmetic_is_reproduced(self):
        spec = parse_map_block("id: world\nlat: 40\nlong: -70\ndefaultZoom: 2\nbounds: [[0, 0], [1000, 2000]]")
        script = render_script_html(spec)
        self.assertIn("center: [0.04, -0.07],", script)
        self.assertIn("zoom: -3\n", script)
        self.assertIn("imageBounds = [[0,0],[1, 2]];", script)

    def test_absent_values_render_like_the_browser_would(self):
        script = render_script_html(parse_map_block("id: bare"))
        self.assertIn("center: [NaN, NaN],", script)
        self.assertIn("zoom: -7.5\n", script)
        self.assertIn("imageBounds = [[undefined],[NaN, NaN]];", script)
        self.assertIn("lat: undefined,", script)
        self.assertIn("markers: undefined\n", script)

    def test_view_transform_is_configurable(self):
        spec = parse_map_block("id: m\nlat: 10\nlong: 20\nbounds: [[1, 2], [3, 4]]")
        view = ViewTransform(center_divisor=1, zoom_factor=1, bounds_divisors=(1, 1))
        script = render_script_html(spec, view)
        self.assertIn("center: [10, 20],", script)
        self.assertIn("zoom: 5\n", script)
        self.assertIn("imageBounds = [[1,2],[3,4]];", script)

    def test_every_field_is_interpolated(self):
        script = render_script_html(parse_map_block("id: m\ntileServer: https://t/{z}.png|T\nunit: both"))
        for key in [
            "id", "height", "width", "lat", "lng", "bounds", "minZoom", "maxZoom", "defaultZoom",
            "zoomDelta", "unit", "scale", "recenter", "darkMode", "tileServer", "overlay", "images",
            "markers",
        ]:
            with self.subTest(key=key):
                self.assertIn(f"        {key}: ", script)
        self.assertIn('tileServer: [{"template": "https://t/{z}.png", "name": "T"}],', script)
        self.assertIn('unit: "both",', script)
        self.assertIn("scale: true,", script)

    def test_script_close_tag_cannot_leak(self):
        script = render_script_html(parse_map_block("id: m\nmarker: poi,1,2,,</script><b>"))
        self.assertEqual(script.count("</script>"), 1)
        self.assertTrue(script.endswith("</script>"))

    def test_map_nodes_are_two_raw_html_blocks(self):
        nodes = render_map_nodes(parse_map_block("id: m"))
        self.assertEqual([node["t"] for node in nodes], ["RawBlock", "RawBlock"])
        self.assertEqual([node["c"][0] for node in nodes], ["html", "html"])
        self.assertTrue(nodes[0]["c"][1].startswith("<div"))
        self.assertTrue(nodes[1]["c"][1].startswith("<script"))


class TestJsLiteral(unittest.TestCase):
    def test_literals(self):
        self.assertEqual(js_literal(None), "undefined")
        self.assertEqual(js_literal(True), "true")
        self.assertEqual(js_literal("a</b"), '"a<\\/b"')
        self.assertEqual(js_literal([1.5, 2]), "[1.5, 2]")


if __name__ == "__main__":
    unittest.main()
