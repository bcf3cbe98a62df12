import csv
import io
import os
import sys
import unittest
from dataclasses import replace

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))


class WebAppTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        for key in list(os.environ):
            if key.startswith("WAIVEFEE_"):
                del os.environ[key]

        try:
            from fastapi.testclient import TestClient
        except Exception as exc:  # pragma: no cover
            cls.skip_reason = f"fastapi testclient not available: {exc}"
            cls.client = None
            return

        from waivefee.web.app import app

        cls.app = app
        cls.client = TestClient(app)
        cls.skip_reason = ""

    def setUp(self):
        if not self.client:
            self.skipTest(self.skip_reason)
        self.app.state.snapshot = None

    def test_health(self):
        resp = self.client.get("/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "ok", "families": 25, "records": 375})

    def test_summary(self):
        resp = self.client.get("/api/summary/2024-2025")
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["summary"]["yearly_total"]["total_students"], 75)
        self.assertEqual(data["summary"]["yearly_total"]["total_amount"], "1875000.00")
        self.assertEqual(data["summary"]["term_summaries"][0]["younger_siblings"], 25)
        self.assertEqual(data["metrics"]["average_per_family"], "75000.00")

    def test_unknown_year_is_404(self):
        self.assertEqual(self.client.get("/api/summary/1999-2000").status_code, 404)
        self.assertEqual(self.client.get("/years/1999-2000").status_code, 404)

    def test_records_filtered(self):
        resp = self.client.get("/api/records", params={"year": "2024-2025", "q": "FAM001", "as_of": "2026-10-19"})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["count"], 3)
        self.assertEqual({r["status"] for r in data["records"]}, {"completed"})
        self.assertEqual(data["records"][0]["record_id"], "FAM001-2024-2025-T1-Y")

    def test_bad_parameters(self):
        self.assertEqual(self.client.get("/api/records", params={"status": "archived"}).status_code, 400)
        self.assertEqual(self.client.get("/api/records", params={"as_of": "yesterday"}).status_code, 400)
        self.assertEqual(self.client.get("/api/families/2024-2025", params={"status": "gone"}).status_code, 400)

    def test_matrix(self):
        data = self.client.get("/api/matrix").json()
        self.assertEqual(len(data["cells"]), 15)
        self.assertEqual(data["year_totals"]["2027-2028"]["older_siblings"], 75)

    def test_families(self):
        resp = self.client.get("/api/families/2026-2027", params={"as_of": "2026-10-19", "q": "FAM001"})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["totals"]["total_families"], 1)
        self.assertEqual(data["families"][0]["younger"]["discount_status"], "active")

    def test_dashboard_pages(self):
        resp = self.client.get("/", params={"year": "2024-2025", "as_of": "2026-10-19"})
        self.assertEqual(resp.status_code, 200)
        self.assertIn("FAM001", resp.text)
        self.assertIn("Multi-Year Waiver Summary Matrix", resp.text)
        details = self.client.get("/years/2026-2027", params={"as_of": "2026-10-19"})
        self.assertEqual(details.status_code, 200)
        self.assertIn("FAM025", details.text)

    def test_thai_language_cookie(self):
        self.client.cookies.set("lang", "th_TH")
        try:
            resp = self.client.get("/", params={"year": "2024-2025"})
        finally:
            self.client.cookies.clear()
        self.assertIn("ตารางสรุปการยกเว้นหลายปี", resp.text)

    def test_export_csv(self):
        resp = self.client.get("/export", params={"year": "2024-2025", "q": "FAM001", "as_of": "2026-10-19"})
        self.assertEqual(resp.status_code, 200)
        rows = list(csv.DictReader(io.StringIO(resp.text)))
        self.assertEqual(len(rows), 3)
        self.assertEqual({row["family_code"] for row in rows}, {"FAM001"})

    def test_export_without_matches(self):
        resp = self.client.get("/export", params={"q": "nobody"})
        self.assertEqual(resp.status_code, 400)

    def test_roster_import_replaces_snapshot(self):
        content = (
            "family_code,older_name,older_grade,younger_name,younger_grade\n"
            "A1,Big A,Grade 9,Small A,Grade 4\n"
            "B2,Big B,Grade 8,Small B,Grade 3\n"
        )
        resp = self.client.post("/roster/import", files={"file": ("roster.csv", content, "text/csv")})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"families": 2, "records": 30})
        self.assertEqual(self.client.get("/health").json()["families"], 2)

    def test_roster_import_validation(self):
        resp = self.client.post("/roster/import", files={"file": ("bad.csv", "foo,bar\n1,2\n", "text/csv")})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("Missing columns", resp.json()["errors"][0])
        self.assertEqual(self.client.get("/health").json()["families"], 25)

    def test_roster_import_rejects_non_utf8(self):
        resp = self.client.post(
            "/roster/import", files={"file": ("roster.csv", b"family_code\xff\xfe,x\n", "text/csv")}
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"errors": ["Roster file must be UTF-8 encoded CSV"]})
        self.assertEqual(self.client.get("/health").json()["families"], 25)

    def test_rotation_note_follows_odd_cycle(self):
        from waivefee import WaiverConfig, WaiverSnapshot, sample_roster

        config = replace(WaiverConfig.default(), cycle_length=5)
        self.app.state.snapshot = WaiverSnapshot.build(sample_roster(2), None, config)
        resp = self.client.get("/", params={"year": "2024-2025", "as_of": "2026-10-19"})
        self.assertEqual(resp.status_code, 200)
        self.assertIn("Years 1-3: younger siblings", resp.text)
        self.assertIn("Years 4-5: older siblings", resp.text)


if __name__ == "__main__":
    unittest.main()
