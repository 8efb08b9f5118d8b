"""Tests for raw-cell coercion: slugs, lists, powers, drive URLs and eras."""

import pytest

from loremaker.engine.coercion import (
    character_slug,
    clamp_level,
    normalise_array,
    normalize_drive_url,
    parse_locations,
    parse_powers,
    split_era_values,
    split_list,
    to_slug,
)


# ---------------------------------------------------------------------------
# Slugs
# ---------------------------------------------------------------------------

class TestSlugs:

    def test_collapses_punctuation_and_trims_dashes(self):
        assert to_slug("  Ava -- Stone!! ") == "ava-stone"

    def test_empty_input(self):
        assert to_slug("") == ""
        assert to_slug(None) == ""

    def test_character_slug_prefers_slug_then_id_then_name(self):
        assert character_slug({"slug": "Given", "id": "x", "name": "y"}) == "given"
        assert character_slug({"id": "Char 7", "name": "y"}) == "char-7"
        assert character_slug({"name": "Nyx Adebayo"}) == "nyx-adebayo"
        assert character_slug(None) == ""


# ---------------------------------------------------------------------------
# Lists
# ---------------------------------------------------------------------------

class TestLists:

    def test_normalise_array(self):
        assert normalise_array(None) == []
        assert normalise_array("  ") == []
        assert normalise_array(" solo ") == ["solo"]
        assert normalise_array(["a", "", None, "b"]) == ["a", "b"]
        assert normalise_array(5) == [5]

    def test_split_list_accepts_every_delimiter(self):
        assert split_list("Lagos and Accra; Kumasi | Tema/Ho, Wa") == [
            "Lagos", "Accra", "Kumasi", "Tema", "Ho", "Wa",
        ]

    def test_split_list_empty(self):
        assert split_list(None) == []
        assert split_list(" , ; ") == []

    def test_locations_are_deduplicated_in_order(self):
        assert parse_locations("Lagos, Accra; Lagos") == ["Lagos", "Accra"]

    @pytest.mark.parametrize("raw", [
        "Lagos and Accra; Kumasi | Tema/Ho, Wa",
        "Sentinels of Dawn",
        " Crimson Veil ;; Freelance and  ",
    ])
    def test_split_list_is_stable_when_rejoined(self, raw):
        once = split_list(raw)
        assert split_list(", ".join(once)) == once


# ---------------------------------------------------------------------------
# Powers
# ---------------------------------------------------------------------------

class TestPowers:

    def test_out_of_ten_is_a_rating_not_a_delimiter(self):
        assert parse_powers("Flight: 7/10") == [{"name": "Flight", "level": 7}]

    def test_paren_level_is_clamped(self):
        assert parse_powers("Telepathy (11)") == [{"name": "Telepathy", "level": 10}]

    def test_trailing_level(self):
        assert parse_powers("Charm 3") == [{"name": "Charm", "level": 3}]

    def test_unrated_power_gets_zero(self):
        assert parse_powers("Mystery") == [{"name": "Mystery", "level": 0}]

    def test_mixed_formats(self):
        powers = parse_powers("Flight=8, Shield:4; Solar Fire: 9/10, Shapeshifting (6)")
        assert [p["name"] for p in powers] == ["Flight", "Shield", "Solar Fire", "Shapeshifting"]
        assert [p["level"] for p in powers] == [8, 4, 9, 6]

    def test_items_without_names_are_dropped(self):
        assert parse_powers(": 5, Flight 2") == [{"name": "Flight", "level": 2}]

    def test_empty(self):
        assert parse_powers("") == []
        assert parse_powers(None) == []

    @pytest.mark.parametrize("raw,expected", [
        ("7.9", 7),
        (-3, 0),
        (42, 10),
        ("abc", 0),
        (None, 0),
        (True, 0),
        (float("nan"), 0),
    ])
    def test_clamp_level(self, raw, expected):
        assert clamp_level(raw) == expected


# ---------------------------------------------------------------------------
# Drive URLs
# ---------------------------------------------------------------------------

class TestDriveUrls:

    def test_file_share_link(self):
        assert (normalize_drive_url("https://drive.google.com/file/d/ABC/view?usp=sharing")
                == "https://drive.google.com/uc?export=view&id=ABC")

    def test_uc_download_becomes_view_and_keeps_resource_key(self):
        assert (normalize_drive_url("https://drive.google.com/uc?export=download&id=XYZ&resourcekey=RK")
                == "https://drive.google.com/uc?export=view&id=XYZ&resourcekey=RK")

    def test_open_link(self):
        assert (normalize_drive_url("https://drive.google.com/open?id=Q1")
                == "https://drive.google.com/uc?export=view&id=Q1")

    def test_thumbnail_link_keeps_resource_key(self):
        assert (normalize_drive_url("https://drive.google.com/thumbnail?id=T1&resourcekey=K&sz=w400")
                == "https://drive.google.com/uc?export=view&id=T1&resourcekey=K")

    def test_usercontent_download(self):
        assert (normalize_drive_url("https://drive.usercontent.google.com/download?id=U1&export=download")
                == "https://drive.google.com/uc?export=view&id=U1")

    def test_googleusercontent_uc_gains_export_view(self):
        assert (normalize_drive_url("https://drive.googleusercontent.com/uc?id=G1")
                == "https://drive.googleusercontent.com/uc?id=G1&export=view")

    def test_other_hosts_come_back_trimmed(self):
        assert (normalize_drive_url("  https://images.example.com/a.png ")
                == "https://images.example.com/a.png")

    @pytest.mark.parametrize("raw", [
        "https://drive.google.com/file/d/ABC/view?usp=sharing",
        "https://drive.google.com/uc?export=download&id=XYZ&resourcekey=RK",
        "https://drive.google.com/open?id=Q1",
        "https://drive.google.com/thumbnail?id=T1&resourcekey=K&sz=w400",
        "https://drive.usercontent.google.com/download?id=U1&export=download",
        "https://drive.googleusercontent.com/uc?id=G1",
        "https://drive.google.com/drive/folders/F1",
        "  https://images.example.com/a.png ",
    ])
    def test_normalising_twice_changes_nothing(self, raw):
        once = normalize_drive_url(raw)
        assert normalize_drive_url(once) == once

    @pytest.mark.parametrize("raw", [None, "", "   ", "not a url", "/relative/path.png", 12])
    def test_non_urls_yield_none(self, raw):
        assert normalize_drive_url(raw) is None


# ---------------------------------------------------------------------------
# Eras
# ---------------------------------------------------------------------------

class TestEras:

    def test_loose_separators(self):
        assert split_era_values("Old Gods... Modern & Future") == ["Old Gods", "Modern", "Future"]

    def test_and_word_and_lists(self):
        assert split_era_values(["Golden Age and Silver Age", "Modern"]) == [
            "Golden Age", "Silver Age", "Modern",
        ]

    def test_empty(self):
        assert split_era_values(None) == []
        assert split_era_values("") == []
