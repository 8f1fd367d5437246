"""
Tests for the DayClassifier module
"""

import pytest
from tripsort.config import Config
from tripsort.patterns import DayClassifier, calculate_day_from_date


class TestDayPrefix:
    """Test cases for the day prefix pattern"""

    def setup_method(self):
        """Set up test fixtures"""
        self.classifier = DayClassifier()

    @pytest.mark.parametrize("name,day", [
        ("Day 1", 1),
        ("day 7", 7),
        ("DAY 12", 12),
        ("D01", 1),
        ("d_2", 2),
        ("D-3", 3),
        ("Day31", 31),
        ("D1 Iceland", 1),
        ("Day 4 - Glacier hike", 4),
    ])
    def test_day_prefix_variants(self, name, day):
        """Test that day prefixes are detected with high confidence"""
        result = self.classifier.classify(name)

        assert result is not None
        assert result.day == day
        assert result.pattern == "day_prefix"
        assert result.confidence == "high"

    @pytest.mark.parametrize("name", ["Day 32", "Day 0", "Day -1", "D99", "Day 123"])
    def test_out_of_range_days_rejected(self, name):
        """Test that out-of-range day numbers produce no day"""
        assert self.classifier.classify(name) is None

    def test_words_starting_with_d_not_matched(self):
        """Test that ordinary words beginning with 'd' are not days"""
        assert self.classifier.classify("Dublin") is None
        assert self.classifier.classify("Dinner") is None

    def test_non_ascii_digits_not_matched(self):
        """Test that only ASCII digits count as day numbers"""
        assert self.classifier.classify("Day ٣") is None
        assert self.classifier.classify("٣ Beach") is None
        assert self.classifier.classify("２０２４-03-15") is None


class TestIsoDate:
    """Test cases for the ISO date patterns"""

    def setup_method(self):
        """Set up test fixtures"""
        self.classifier = DayClassifier()

    def test_iso_date_with_trip_start(self):
        """Test day computed relative to trip start"""
        result = self.classifier.classify("2024-03-17", trip_start="2024-03-15")

        assert result.day == 3
        assert result.pattern == "iso_date"
        assert result.confidence == "high"

    def test_iso_date_before_trip_start(self):
        """Test dates before the trip start give unbounded day numbers"""
        result = self.classifier.classify("2024-03-13", trip_start="2024-03-15")

        assert result.day == -1
        assert result.pattern == "iso_date"
        assert result.confidence == "high"

    def test_iso_date_underscores(self):
        """Test underscore separated dates"""
        result = self.classifier.classify("2024_03_16", trip_start="2024-03-15")

        assert result.day == 2
        assert result.pattern == "iso_date"

    def test_iso_date_inside_name(self):
        """Test that the date may appear anywhere in the name"""
        result = self.classifier.classify("Reykjavik 2024-03-16", trip_start="2024-03-15")

        assert result.day == 2

    def test_iso_date_without_trip_start_is_day_one(self):
        """Test that without a trip start every date resolves to day 1"""
        result = self.classifier.classify("2024-03-20")

        assert result.day == 1
        assert result.confidence == "medium"
        assert result.pattern == "iso_date"

    def test_invalid_date_falls_through(self):
        """Test that unparseable dates skip the date pattern"""
        assert self.classifier.classify("2024-13-45") is None

    def test_invalid_date_falls_through_to_numeric_prefix(self):
        """Test fall-through to later patterns after a bad date"""
        result = self.classifier.classify("12 trip 2024-02-30")

        assert result.day == 12
        assert result.pattern == "numeric_prefix"

    def test_day_prefix_takes_priority_over_date(self):
        """Test that the first matching pattern wins"""
        result = self.classifier.classify("Day 2 2024-03-20", trip_start="2024-03-15")

        assert result.day == 2
        assert result.pattern == "day_prefix"

    def test_calculate_day_from_date(self):
        """Test the day calculation helper"""
        assert calculate_day_from_date("2024-03-15", "2024-03-15") == 1
        assert calculate_day_from_date("2024-03-01", "2024-02-28") == 3
        assert calculate_day_from_date("2024-03-15", "not-a-date") is None
        assert calculate_day_from_date("2024-03-15") == 1


class TestNumericPrefix:
    """Test cases for the numeric prefix pattern"""

    def setup_method(self):
        """Set up test fixtures"""
        self.classifier = DayClassifier()

    @pytest.mark.parametrize("name,day", [
        ("1 Iceland", 1),
        ("02_Reykjavik", 2),
        ("3-Hiking", 3),
    ])
    def test_numeric_prefix(self, name, day):
        """Test numeric prefixes are detected with medium confidence"""
        result = self.classifier.classify(name)

        assert result.day == day
        assert result.pattern == "numeric_prefix"
        assert result.confidence == "medium"

    def test_numeric_prefix_requires_separator(self):
        """Test that bare numbers are not a prefix"""
        assert self.classifier.classify("12") is None
        assert self.classifier.classify("7Iceland") is None

    def test_numeric_prefix_out_of_range(self):
        """Test that numeric prefixes above the bound are rejected"""
        assert self.classifier.classify("45 Beach") is None


class TestClassifierConfig:
    """Test DayClassifier with custom Config"""

    def test_custom_day_bounds(self):
        """Test that configured bounds are honored"""
        config = Config()
        config.settings.max_day = 14

        classifier = DayClassifier(config)

        assert classifier.classify("Day 14").day == 14
        assert classifier.classify("Day 15") is None

    def test_suggest_name(self):
        """Test normalized folder names"""
        classifier = DayClassifier()

        assert classifier.suggest_name(1) == "Day 01"
        assert classifier.suggest_name(12) == "Day 12"
        assert classifier.suggest_name(None) == "Unsorted"

    def test_list_patterns_in_priority_order(self):
        """Test the pattern priority order"""
        classifier = DayClassifier()

        assert classifier.list_patterns() == [
            "day_prefix", "iso_date", "iso_date", "numeric_prefix"
        ]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
