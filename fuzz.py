#!/usr/bin/env python3
"""
Random fuzzer for the mathsafe policy filters.
Generates hostile/malformed attribute values and checks that every filter
stays total, idempotent and closed against the payloads it guards.
"""

import argparse
import random
import re
import string
import sys
import time
import traceback

from mathsafe import AttributeKind, PolicyFilter, build_config

PROTOCOLS = ["http", "https", "file", "javascript", "data", "vbscript", "ftp", "mailto", ""]

STYLE_PROPERTIES = [
    "color", "background-color", "border", "cursor", "margin", "padding", "text-shadow",
    "font-family", "font-size", "font-style", "font-weight", "opacity", "outline",
    "position", "top", "left", "z-index", "behavior", "-moz-binding", "background",
    "fontSize", "Color", "COLOR", "",
]

STYLE_VALUES = [
    "red", "#f00", "rgb(1, 2, 3)", "1px solid", "0", "2em", "999px", "pointer",
    "expression(alert(1))", "  expression(alert(1))", "url(javascript:alert(1))",
    "url('javascript:alert(1)')", 'url("JaVaScRiPt:alert(1)")', "javascript:", "fixed",
    "\\6a avascript:alert(1)", "url(data:text/html,x)", "inherit", "!important",
]

EXTENSIONS = [
    "verb", "amsmath", "AMSmath", "autobold", "AUTOBOLD", "autoload-all", "noErrors",
    "HTML", "html", "unknown", "[Contrib]/physics", "../../etc/passwd",
]

SPECIAL_CHARS = [
    "\x00", "\x01", "\x0b", "\x0c", "\x7f",  # Control chars
    "\ufffd",  # Replacement character
    "\u00a0",  # Non-breaking space
    "\u2028", "\u2029",  # Line/paragraph separators
    "\u200b", "\u200c", "\u200d",  # Zero-width chars
    "\ufeff",  # BOM
    "\u017f", "\u0131", "\u212a",  # Letters that case-fold to ASCII
]

CSS_JUNK = [";", ":", "{", "}", "(", ")", "'", '"', "\\", "/*", "*/", "@import", "!", ",", "url(", "\n"]

NON_STRINGS = [None, 0, 1.5, True, [], {}, b"https://x", object()]


def random_string(min_len=0, max_len=20):
    """Generate random ASCII string."""
    length = random.randint(min_len, max_len)
    return "".join(random.choices(string.ascii_letters + string.digits, k=length))


def random_whitespace():
    """Generate random whitespace (including weird ones)."""
    ws = [" ", "\t", "\n", "\r", "\f", "\v", "\x00", ""]
    return "".join(random.choices(ws, k=random.randint(0, 5)))


def fuzz_url():
    """Generate URLs with odd protocols and spacing."""
    strategies = [
        lambda: random.choice(PROTOCOLS) + "://" + random_string(1, 10) + ".com",
        lambda: random_whitespace() + random.choice(PROTOCOLS).upper() + ":" + random_string(),
        lambda: "java" + random.choice(SPECIAL_CHARS) + "script:alert(1)",
        lambda: "/" + random_string(),
        lambda: "#" + random_string(),
        lambda: random_string(1, 5) + ":" + random_string(),
        lambda: "",
    ]
    return random.choice(strategies)()


def fuzz_name():
    """Generate class names and ids."""
    strategies = [
        lambda: "MJX-" + random_string(),
        lambda: "mjx-" + random_string(),
        lambda: random_string() + "MJX-" + random_string(),
        lambda: random_whitespace() + "MJX-" + random_string(),
        lambda: "MJX-" + random_string() + " " + random_string(),
        lambda: random_string(),
        lambda: random.choice(SPECIAL_CHARS) + "MJX-",
    ]
    return random.choice(strategies)()


def fuzz_declaration():
    """Generate one property:value pair, sometimes broken."""
    strategies = [
        lambda: f"{random.choice(STYLE_PROPERTIES)}: {random.choice(STYLE_VALUES)}",
        lambda: f"{random.choice(STYLE_PROPERTIES)}:{random.choice(STYLE_VALUES)} !important",
        lambda: f"{random.choice(STYLE_PROPERTIES)} {random.choice(STYLE_VALUES)}",  # Missing colon
        lambda: random.choice(STYLE_PROPERTIES) + ":" + random.choice(CSS_JUNK),
        lambda: random.choice(CSS_JUNK) + random.choice(STYLE_PROPERTIES),
        lambda: f"{random.choice(STYLE_PROPERTIES)}: {random.choice(SPECIAL_CHARS)}{random.choice(STYLE_VALUES)}",
    ]
    return random.choice(strategies)()


def fuzz_styles():
    """Generate a declaration block."""
    parts = [fuzz_declaration() for _ in range(random.randint(0, 6))]
    sep = random.choice([";", "; ", ";\n", ";;", " "])
    return sep.join(parts)


def fuzz_size():
    """Generate font sizes."""
    strategies = [
        lambda: random.uniform(-10, 10),
        lambda: random.randint(-5, 100),
        lambda: random.choice([0, 0.7, 1.44, float("inf"), float("-inf"), float("nan")]),
        lambda: random.choice(["1em", "12pt", ""]),
    ]
    return random.choice(strategies)()


def fuzz_require():
    """Generate extension names."""
    strategies = [
        lambda: random.choice(EXTENSIONS),
        lambda: random.choice(EXTENSIONS).upper(),
        lambda: random_string(1, 10),
        lambda: random.choice(EXTENSIONS) + random.choice(SPECIAL_CHARS),
    ]
    return random.choice(strategies)()


def fuzz_value(generator):
    """Mostly well-typed values, sometimes not a string at all."""
    if random.random() < 0.05:
        return random.choice(NON_STRINGS)
    return generator()


def random_policy():
    """Build a policy with a random level per attribute kind."""
    allow = {kind.value: random.choice(["all", "safe", "none"]) for kind in AttributeKind}
    return PolicyFilter(build_config({"allow": allow}))


def check_case(policy):
    """Run every filter once on fresh input; return a list of problems."""
    problems = []
    config = policy.config

    cases = [
        ("filter_url", fuzz_value(fuzz_url)),
        ("filter_class", fuzz_value(fuzz_name)),
        ("filter_id", fuzz_value(fuzz_name)),
        ("filter_styles", fuzz_value(fuzz_styles)),
        ("filter_size", fuzz_size()),
        ("filter_require", fuzz_value(fuzz_require)),
    ]

    for method, value in cases:
        func = getattr(policy, method)
        out = func(value)
        if out is None:
            continue
        again = func(out)
        if again != out and not (isinstance(out, float) and out != out):
            problems.append(f"{method} not idempotent: {value!r} -> {out!r} -> {again!r}")

        if method == "filter_styles" and config.level(AttributeKind.STYLE).value == "safe":
            if "javascript:" in out or re.search(r":\s*expression", out):
                problems.append(f"filter_styles leaked a payload: {value!r} -> {out!r}")
            if config.level(AttributeKind.FONT_SIZE).value != "all" and "font-size" in out:
                problems.append(f"filter_styles leaked font-size: {value!r} -> {out!r}")
        if method == "filter_url" and config.level(AttributeKind.URL).value == "safe":
            if out.strip().lower().startswith("javascript:"):
                problems.append(f"filter_url leaked a javascript URL: {value!r}")
        if method == "filter_size" and config.level(AttributeKind.FONT_SIZE).value == "safe":
            if not config.size_min <= out <= config.size_max:
                problems.append(f"filter_size out of bounds: {value!r} -> {out!r}")

    return cases, problems


def run_fuzzer(num_tests, seed=None, verbose=False, save_failures=False):
    """Run the fuzzer."""
    if seed is not None:
        random.seed(seed)
    else:
        seed = random.randint(0, 2**32 - 1)
        random.seed(seed)

    print(f"Fuzzing mathsafe filters with {num_tests} test cases (seed={seed})")
    print("=" * 60)

    crashes = []
    violations = []
    start_time = time.time()

    for i in range(num_tests):
        policy = random_policy()
        try:
            cases, problems = check_case(policy)
        except Exception as e:
            crashes.append({
                "test_num": i,
                "policy": repr(policy),
                "error": str(e),
                "traceback": traceback.format_exc(),
            })
            if verbose:
                print(f"\n[CRASH] Test {i}: {e}")
            continue

        if problems:
            violations.append({"test_num": i, "policy": repr(policy), "cases": cases, "problems": problems})
            if verbose:
                for problem in problems:
                    print(f"\n[VIOLATION] Test {i}: {problem}")

        if (i + 1) % 1000 == 0:
            elapsed = time.time() - start_time
            print(f"Progress: {i + 1}/{num_tests} ({(i + 1) / elapsed:.0f} tests/sec)")

    elapsed = time.time() - start_time

    print("\n" + "=" * 60)
    print("FUZZING RESULTS")
    print("=" * 60)
    print(f"Total tests: {num_tests}")
    print(f"Crashes: {len(crashes)}")
    print(f"Violations: {len(violations)}")
    print(f"Time: {elapsed:.2f}s")

    for crash in crashes[:10]:
        print(f"\nTest #{crash['test_num']} {crash['policy']}:")
        print(f"  Error: {crash['error']}")

    for violation in violations[:10]:
        print(f"\nTest #{violation['test_num']} {violation['policy']}:")
        for problem in violation["problems"]:
            print(f"  {problem}")

    if save_failures and (crashes or violations):
        filename = f"fuzz_failures_{int(time.time())}.txt"
        with open(filename, "w") as f:
            f.write(f"Seed: {seed}\n\n")
            for crash in crashes:
                f.write(f"=== CRASH #{crash['test_num']} {crash['policy']} ===\n")
                f.write(f"Error: {crash['error']}\n")
                f.write(f"Traceback:\n{crash['traceback']}\n\n")
            for violation in violations:
                f.write(f"=== VIOLATION #{violation['test_num']} {violation['policy']} ===\n")
                for method, value in violation["cases"]:
                    f.write(f"{method}({value!r})\n")
                for problem in violation["problems"]:
                    f.write(f"  {problem}\n")
                f.write("\n")
        print(f"\nFailures saved to {filename}")

    return not crashes and not violations


def main():
    parser = argparse.ArgumentParser(description="Fuzz mathsafe policy filters with hostile input")
    parser.add_argument(
        "--num-tests", "-n",
        type=int,
        default=1000,
        help="Number of test cases to generate (default: 1000)",
    )
    parser.add_argument(
        "--seed", "-s",
        type=int,
        default=None,
        help="Random seed for reproducibility",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "--save-failures",
        action="store_true",
        help="Save failures to a file",
    )
    parser.add_argument(
        "--sample",
        type=int,
        metavar="N",
        help="Just print N sample fuzzed style strings (no filtering)",
    )

    args = parser.parse_args()

    if args.sample:
        if args.seed:
            random.seed(args.seed)
        for i in range(args.sample):
            print(f"=== Sample {i+1} ===")
            print(repr(fuzz_styles()))
            print()
        return

    success = run_fuzzer(
        args.num_tests,
        seed=args.seed,
        verbose=args.verbose,
        save_failures=args.save_failures,
    )

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
