#!/usr/bin/env python3
"""
Pipeline Demo: Model → Classification → Generated Modules

Shows the full workflow on the bundled example model:
1. Parse the modeling language text
2. Classify every relation
3. Generate the TypeScript and Python modules
"""

from fga_typegen.backends import Target
from fga_typegen.classifier import CATEGORY_ORDER, classify_model
from fga_typegen.examples import EXAMPLE_DSL
from fga_typegen.generator import generate_module
from fga_typegen.serialization import model_from_dsl


def main():
    print("=" * 80)
    print("PIPELINE DEMO: DSL → Model → Classification → Modules")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Parse
    # =========================================================================
    print("\n1. PARSING MODEL...")
    model = model_from_dsl(EXAMPLE_DSL, model_id="example")
    print(f"   ✓ Schema: {model.schema_version}")
    print(f"   ✓ Types: {', '.join(model.type_names)}")
    print(f"   ✓ Conditions: {', '.join(model.conditions) or '-'}")

    # =========================================================================
    # STEP 2: Classify
    # =========================================================================
    print("\n2. CLASSIFYING RELATIONS...")
    classification = classify_model(model)
    for type_name in model.type_names:
        buckets = classification.categories_for(type_name)
        summary = ", ".join(
            f"{category.value}={list(buckets[category])}"
            for category in CATEGORY_ORDER
            if buckets[category]
        )
        print(f"   {type_name:<14} {summary or '(no relations)'}")

    # =========================================================================
    # STEP 3: Generate
    # =========================================================================
    print("\n3. GENERATING MODULES...")
    for target in Target:
        generated = generate_module(model, target)
        with open(generated.file_name, "w", encoding="utf-8") as f:
            f.write(generated.text)
        print(f"   ✓ {target.value:<10} → {generated.file_name} ({len(generated.text.splitlines())} lines)")

    print("\n" + "=" * 80)


if __name__ == "__main__":
    main()
