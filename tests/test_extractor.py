import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.analysis.extractor import (  # noqa: E402
    detect_sections,
    extract_contact_info,
    extract_education,
    extract_experience,
    extract_keywords,
    extract_skills,
    extract_structure,
    header_section,
)

SAMPLE_RESUME = (PROJECT_ROOT / "tests" / "fixtures" / "sample_resume.txt").read_text(encoding="utf-8")


class SectionDetectionTests(unittest.TestCase):
    def test_sample_resume_has_four_core_sections(self):
        sections = detect_sections(SAMPLE_RESUME)
        self.assertTrue(sections.summary)
        self.assertTrue(sections.experience)
        self.assertTrue(sections.education)
        self.assertTrue(sections.skills)
        self.assertFalse(sections.projects)
        self.assertFalse(sections.certifications)
        self.assertEqual(sections.present_count(), 4)

    def test_synonyms_are_case_insensitive(self):
        sections = detect_sections("PROFILE\nEMPLOYMENT\nACADEMIC\nCOMPETENCIES\nPORTFOLIO\nLICENSES")
        self.assertEqual(sections.present_count(), 6)

    def test_empty_text_has_no_sections(self):
        self.assertEqual(detect_sections("").present_count(), 0)

    def test_header_section_rejects_long_lines(self):
        self.assertEqual(header_section("Work Experience:"), "experience")
        self.assertEqual(header_section("Technical Skills"), "skills")
        self.assertIsNone(header_section("Led the experience redesign for five teams"))
        self.assertIsNone(header_section("Software Engineer"))


class ContactExtractionTests(unittest.TestCase):
    def test_first_match_for_each_field(self):
        contact = extract_contact_info(
            "a@x.io b@y.io (555) 987-6543 https://linkedin.com/in/jane-doe github.com/janedoe"
        )
        self.assertEqual(contact.email, "a@x.io")
        self.assertEqual(contact.phone, "(555) 987-6543")
        self.assertEqual(contact.linkedin, "linkedin.com/in/jane-doe")
        self.assertEqual(contact.github, "github.com/janedoe")
        self.assertEqual(contact.found_count(), 4)

    def test_absent_fields_are_none(self):
        contact = extract_contact_info("No contact details here")
        self.assertIsNone(contact.email)
        self.assertIsNone(contact.phone)
        self.assertEqual(contact.found_count(), 0)


class KeywordAndSkillTests(unittest.TestCase):
    def test_keywords_preserve_vocabulary_order_without_duplicates(self):
        keywords = extract_keywords("Docker and Python, python again, then SQL and JavaScript")
        self.assertEqual(keywords.technical, ["javascript", "python", "sql", "docker"])

    def test_substring_matching_counts_java_inside_javascript(self):
        skills = extract_skills("JavaScript only")
        self.assertIn("javascript", skills)
        self.assertIn("java", skills)

    def test_sample_resume_skills(self):
        skills = extract_skills(SAMPLE_RESUME)
        for expected in ("javascript", "python", "java", "react", "sql", "docker"):
            self.assertIn(expected, skills)


class EntryExtractionTests(unittest.TestCase):
    def test_experience_entry_from_sample(self):
        entries = extract_experience(SAMPLE_RESUME)
        self.assertEqual(len(entries), 1)
        entry = entries[0]
        self.assertEqual(entry.title, "Software Engineer")
        self.assertEqual(entry.company, "Acme Inc")
        self.assertEqual(entry.duration, "2019 - 2022")
        self.assertEqual(entry.description, "Built systems")

    def test_education_entry_from_sample(self):
        entries = extract_education(SAMPLE_RESUME)
        self.assertEqual(len(entries), 1)
        entry = entries[0]
        self.assertEqual(entry.degree, "Bachelor of Science")
        self.assertEqual(entry.institution, "State University")
        self.assertEqual(entry.duration, "2015 - 2019")

    def test_multiple_experience_entries_collect_bullets(self):
        text = (
            "Experience\n"
            "Senior Developer\n"
            "Globex Corp\n"
            "Jan 2021 - Present\n"
            "- Led migration\n"
            "* Cut costs\n"
            "Data Analyst\n"
            "Initech LLC\n"
            "2018 - 2020\n"
            "Skills\n"
            "Python\n"
        )
        entries = extract_experience(text)
        self.assertEqual([entry.title for entry in entries], ["Senior Developer", "Data Analyst"])
        self.assertEqual(entries[0].company, "Globex Corp")
        self.assertEqual(entries[0].description, "Led migration Cut costs")
        self.assertEqual(entries[1].company, "Initech LLC")
        self.assertEqual(entries[1].description, "")

    def test_lines_outside_the_section_are_ignored(self):
        self.assertEqual(extract_experience("Software Engineer\nAcme Inc\n2019"), [])

    def test_extract_structure_on_empty_text(self):
        facts = extract_structure("")
        self.assertEqual(facts.sections.present_count(), 0)
        self.assertEqual(facts.contact_info.found_count(), 0)
        self.assertEqual(facts.experience, [])
        self.assertEqual(facts.education, [])
        self.assertEqual(facts.skills, [])


if __name__ == "__main__":
    unittest.main()
