#!/usr/bin/env python3
"""
Validation script for the short-link service.
Tests the live running service to ensure all functionality works correctly.
"""

import sys
import time
import requests
from typing import Optional
from datetime import datetime, timedelta, timezone


class ServiceValidator:
    """Validates short-link service functionality."""

    def __init__(self, base_url: str = "http://localhost:5000"):
        self.base_url = base_url.rstrip("/")
        self.session = requests.Session()
        self.test_results = []

    def print_header(self, text: str):
        """Print a formatted header."""
        print(f"\n{'='*60}")
        print(f"  {text}")
        print(f"{'='*60}\n")

    def print_test(self, name: str, passed: bool, details: str = ""):
        """Print test result."""
        status = "✅ PASS" if passed else "❌ FAIL"
        self.test_results.append((name, passed))
        print(f"{status} - {name}")
        if details:
            print(f"       {details}")

    def test_health_check(self) -> bool:
        """Test health check endpoint."""
        try:
            response = self.session.get(f"{self.base_url}/api/health", timeout=5)
            if response.status_code == 200:
                data = response.json()
                is_healthy = (
                    data.get("status") == "healthy" and
                    data.get("database") == "healthy"
                )
                details = f"DB: {data.get('database')}, Cache: {data.get('cache', 'N/A')}"
                self.print_test("Health Check", is_healthy, details)
                return is_healthy
            else:
                self.print_test("Health Check", False, f"Status: {response.status_code}")
                return False
        except requests.RequestException as e:
            self.print_test("Health Check", False, f"Error: {str(e)}")
            return False

    def test_create_short_url(self) -> Optional[str]:
        """Test creating a short URL."""
        try:
            test_url = f"https://example.com/test/{int(time.time())}"
            response = self.session.post(
                f"{self.base_url}/shorten",
                json={"originalUrl": test_url},
                timeout=5
            )

            if response.status_code == 200:
                data = response.json()
                short_code = data.get("url")
                if short_code and data.get("originalUrl") == test_url:
                    self.print_test(
                        "Create Short URL",
                        True,
                        f"Code: {short_code}, URL: {data.get('shortUrl')}"
                    )
                    return short_code

            self.print_test("Create Short URL", False, f"Status: {response.status_code}")
            return None
        except requests.RequestException as e:
            self.print_test("Create Short URL", False, f"Error: {str(e)}")
            return None

    def test_get_link_info(self, short_code: str) -> Optional[int]:
        """Test getting link information."""
        try:
            response = self.session.get(f"{self.base_url}/info/{short_code}", timeout=5)

            if response.status_code == 200:
                data = response.json()
                has_required_fields = all(
                    key in data for key in ["originalUrl", "createdAt", "clickCount"]
                )
                self.print_test("Get Link Info", has_required_fields, f"Click count: {data.get('clickCount')}")
                return data.get("clickCount") if has_required_fields else None
            else:
                self.print_test("Get Link Info", False, f"Status: {response.status_code}")
                return None
        except requests.RequestException as e:
            self.print_test("Get Link Info", False, f"Error: {str(e)}")
            return None

    def test_redirect(self, short_code: str) -> bool:
        """Test redirect functionality."""
        try:
            response = self.session.get(
                f"{self.base_url}/{short_code}",
                allow_redirects=False,
                timeout=5
            )

            is_redirect = response.status_code == 302
            location = response.headers.get("Location", "")
            self.print_test(
                "Redirect",
                is_redirect,
                f"Redirects to: {location[:50]}..." if location else "No Location header"
            )
            return is_redirect
        except requests.RequestException as e:
            self.print_test("Redirect", False, f"Error: {str(e)}")
            return False

    def test_click_counted(self, short_code: str, clicks_before: int) -> bool:
        """Test that a redirect is reflected in info and analytics."""
        try:
            info = self.session.get(f"{self.base_url}/info/{short_code}", timeout=5).json()
            analytics = self.session.get(f"{self.base_url}/analytics/{short_code}", timeout=5).json()

            counted = (
                info.get("clickCount") == clicks_before + 1 and
                analytics.get("clickCount") == info.get("clickCount") and
                len(analytics.get("ipAddresses", [])) == analytics.get("clickCount")
            )
            self.print_test(
                "Click Recorded",
                counted,
                f"Clicks: {info.get('clickCount')}, IPs: {analytics.get('ipAddresses')}"
            )
            return counted
        except (requests.RequestException, ValueError) as e:
            self.print_test("Click Recorded", False, f"Error: {str(e)}")
            return False

    def test_alias(self) -> Optional[str]:
        """Test alias functionality."""
        try:
            alias = f"test{int(time.time())}"
            response = self.session.post(
                f"{self.base_url}/shorten",
                json={
                    "originalUrl": "https://github.com/example/repo",
                    "alias": alias
                },
                timeout=5
            )

            if response.status_code == 200:
                data = response.json()
                code_matches = data.get("url") == alias
                self.print_test("Alias", code_matches, f"Code: {alias}")
                return alias if code_matches else None
            else:
                self.print_test("Alias", False, f"Status: {response.status_code}")
                return None
        except requests.RequestException as e:
            self.print_test("Alias", False, f"Error: {str(e)}")
            return None

    def test_duplicate_alias(self, existing_code: str) -> bool:
        """Test duplicate alias rejection."""
        try:
            response = self.session.post(
                f"{self.base_url}/shorten",
                json={
                    "originalUrl": "https://different-url.com",
                    "alias": existing_code
                },
                timeout=5
            )

            is_conflict = response.status_code == 409 and "error" in response.json()
            self.print_test(
                "Duplicate Alias Rejection",
                is_conflict,
                f"Status: {response.status_code} (expected 409)"
            )
            return is_conflict
        except (requests.RequestException, ValueError) as e:
            self.print_test("Duplicate Alias Rejection", False, f"Error: {str(e)}")
            return False

    def test_invalid_url(self) -> bool:
        """Test invalid URL rejection."""
        try:
            response = self.session.post(
                f"{self.base_url}/shorten",
                json={"originalUrl": "not-a-valid-url"},
                timeout=5
            )

            is_rejected = response.status_code == 400
            self.print_test(
                "Invalid URL Rejection",
                is_rejected,
                f"Status: {response.status_code} (expected 400)"
            )
            return is_rejected
        except requests.RequestException as e:
            self.print_test("Invalid URL Rejection", False, f"Error: {str(e)}")
            return False

    def test_past_expiry(self) -> bool:
        """Test rejection of an expiry in the past."""
        try:
            past = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
            response = self.session.post(
                f"{self.base_url}/shorten",
                json={"originalUrl": "https://example.com/expired", "expiresAt": past},
                timeout=5
            )

            is_rejected = response.status_code == 400
            self.print_test(
                "Past Expiry Rejection",
                is_rejected,
                f"Status: {response.status_code} (expected 400)"
            )
            return is_rejected
        except requests.RequestException as e:
            self.print_test("Past Expiry Rejection", False, f"Error: {str(e)}")
            return False

    def test_nonexistent_code(self) -> bool:
        """Test accessing a non-existent short code."""
        try:
            response = self.session.get(
                f"{self.base_url}/nonexistent999",
                allow_redirects=False,
                timeout=5
            )

            is_not_found = response.status_code == 404
            self.print_test(
                "Non-existent Code",
                is_not_found,
                f"Status: {response.status_code} (expected 404)"
            )
            return is_not_found
        except requests.RequestException as e:
            self.print_test("Non-existent Code", False, f"Error: {str(e)}")
            return False

    def test_stats_endpoint(self) -> bool:
        """Test stats endpoint."""
        try:
            response = self.session.get(f"{self.base_url}/api/stats", timeout=5)

            if response.status_code == 200:
                data = response.json()
                has_stats = "totalLinks" in data and "totalClicks" in data
                self.print_test(
                    "Stats Endpoint",
                    has_stats,
                    f"Links: {data.get('totalLinks')}, Clicks: {data.get('totalClicks')}"
                )
                return has_stats
            else:
                self.print_test("Stats Endpoint", False, f"Status: {response.status_code}")
                return False
        except requests.RequestException as e:
            self.print_test("Stats Endpoint", False, f"Error: {str(e)}")
            return False

    def run_all_tests(self) -> bool:
        """Run all validation tests."""
        self.print_header("Short-Link Service Validation")
        print(f"Testing service at: {self.base_url}")
        print(f"Timestamp: {datetime.now().isoformat()}\n")

        # Basic connectivity
        if not self.test_health_check():
            print("\n❌ Health check failed. Service may not be running.")
            print(f"   Make sure the service is accessible at {self.base_url}")
            return False

        print()

        # Core functionality tests
        short_code = self.test_create_short_url()
        if short_code:
            clicks_before = self.test_get_link_info(short_code)
            if self.test_redirect(short_code) and clicks_before is not None:
                self.test_click_counted(short_code, clicks_before)

        print()

        # Alias and rejection tests
        alias = self.test_alias()
        if alias:
            self.test_duplicate_alias(alias)

        self.test_invalid_url()
        self.test_past_expiry()
        self.test_nonexistent_code()

        print()

        # Additional endpoints
        self.test_stats_endpoint()

        # Print summary
        self.print_summary()

        # Return overall success
        return all(passed for _, passed in self.test_results)

    def print_summary(self):
        """Print test summary."""
        total = len(self.test_results)
        passed = sum(1 for _, p in self.test_results if p)
        failed = total - passed

        self.print_header("Test Summary")
        print(f"Total Tests:  {total}")
        print(f"✅ Passed:     {passed}")
        print(f"❌ Failed:     {failed}")
        print(f"Success Rate: {(passed/total*100):.1f}%")

        if failed > 0:
            print("\n⚠️  Failed tests:")
            for name, passed in self.test_results:
                if not passed:
                    print(f"   - {name}")

        print()


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Validate short-link service functionality"
    )
    parser.add_argument(
        "--url",
        default="http://localhost:5000",
        help="Base URL of the service (default: http://localhost:5000)"
    )

    args = parser.parse_args()

    validator = ServiceValidator(args.url)

    try:
        success = validator.run_all_tests()
        sys.exit(0 if success else 1)
    except KeyboardInterrupt:
        print("\n\n⚠️  Validation interrupted by user")
        sys.exit(2)


if __name__ == "__main__":
    main()
