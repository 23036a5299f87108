#!/usr/bin/env python3
"""
Complete Pipeline Demo: Form definition → Analysis → Session → Diagrams

Shows the full workflow:
1. Load a form definition from JSON
2. Analyze its logic
3. Walk a response session (navigation, piping, calculator)
4. Generate Graphviz diagrams
"""

import logging

from formflow.analyzer import analyze_form
from formflow.backends import DotMode, generate_dot, save_dot_file
from formflow.calculator import calculate_question
from formflow.examples import build_example_team_survey
from formflow.navigator import SessionPath, compute_next_question
from formflow.operators import QuestionType
from formflow.piping import render_piped_text
from formflow.serialization import form_from_json, form_to_json


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 80)
    print("COMPLETE PIPELINE DEMO: Definition → Analysis → Session → Diagrams")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Load definition
    # =========================================================================
    print("\n1. LOADING FORM...")
    form = form_from_json(form_to_json(build_example_team_survey()))
    print(f"   ✓ Loaded form: {form.title} ({form.id})")
    print(f"   ✓ Questions: {len(form)}")

    # =========================================================================
    # STEP 2: Analyze
    # =========================================================================
    print("\n2. ANALYZING FORM...")
    report = analyze_form(form)
    print(f"   ✓ Questions with logic: {report.questions_with_logic}")
    print(f"   ✓ Conditions: {report.total_conditions}")
    print(f"   ✓ Jumps: {report.total_jumps}")
    print(f"   ✓ Valid: {report.is_valid}")
    for issue in report.issues:
        print(f"      - [{issue.severity}] {issue.code}: {issue.message}")

    # =========================================================================
    # STEP 3: Response session
    # =========================================================================
    print("\n3. RESPONSE SESSION (manager using the tracker)...")
    answers = {
        "name": "Ada",
        "role": "manager",
        "team_size": 6,
        "tools": ["tracker"],
        "satisfaction": 4,
    }
    path = SessionPath()
    cursor = None
    while True:
        result = compute_next_question(form, answers, cursor)
        if result.end:
            break
        question = form.questions[result.cursor]
        title = render_piped_text(question.title, form, answers)
        if question.type == QuestionType.CALCULATOR:
            title = f"{title}: {calculate_question(question, answers)}"
        print(f"   → [{result.cursor}] {title}")
        path = path.advance(result)
        cursor = result.cursor
    print(f"   ✓ Path: {path.cursors}")

    # =========================================================================
    # STEP 4: Diagrams
    # =========================================================================
    print("\n4. GENERATING DIAGRAMS...")
    for mode in DotMode:
        filename = f"form_{mode.value}.dot"
        save_dot_file(form, filename, mode=mode)
        print(f"   ✓ Saved {filename}")

    lines = generate_dot(form, mode=DotMode.SIMPLE).split("\n")
    for line in lines[:15]:
        print(f"   {line}")
    if len(lines) > 15:
        print(f"   ... ({len(lines) - 15} more lines)")

    print("\n" + "=" * 80)
    print("PIPELINE COMPLETE!")
    print("\nTo visualize the diagrams:")
    print("  dot -Tpng form_simple.dot -o form_simple.png")
    print("=" * 80)


if __name__ == "__main__":
    main()
