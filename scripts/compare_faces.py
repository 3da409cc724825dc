#!/usr/bin/env python3
"""
Compare Face Embeddings Script

Uploads two images to a running gateway, fetches the descriptor of the best
face in each, and prints the cosine similarity between them.

Usage:
    python scripts/compare_faces.py <image1_path> <image2_path>

Example:
    BASE_URL=http://localhost:3000 python scripts/compare_faces.py alice_1.jpg alice_2.jpg
"""

import mimetypes
import os
import sys

import numpy as np
import requests

# --- Configuration ---
BASE_URL = os.getenv("BASE_URL", "http://localhost:3000")
TIMEOUT = 30


def get_embedding(image_path: str) -> np.ndarray:
    """
    Posts one image to /embeddings and returns its L2-normalized descriptor.
    """
    content_type = mimetypes.guess_type(image_path)[0] or "application/octet-stream"
    with open(image_path, "rb") as image_file:
        files = {"image": (os.path.basename(image_path), image_file, content_type)}
        response = requests.post(f"{BASE_URL}/embeddings", files=files, timeout=TIMEOUT)

    data = response.json()
    if response.status_code != 200:
        print(f"Error: {image_path}: {response.status_code} {data.get('error')}")
        return np.array([])

    embedding = np.array(data["embeddings"], dtype=np.float32)

    # L2 normalization (critical for cosine similarity)
    norm = np.linalg.norm(embedding)
    if norm > 0:
        embedding = embedding / norm

    return embedding


def main():
    """Main function to compare two faces."""
    if len(sys.argv) != 3:
        print("Usage: python scripts/compare_faces.py <image1_path> <image2_path>")
        sys.exit(1)

    image_path1 = sys.argv[1]
    image_path2 = sys.argv[2]

    if not os.path.exists(image_path1) or not os.path.exists(image_path2):
        print(f"Error: One or both image paths do not exist.")
        print(f"  - Checked: {image_path1}")
        print(f"  - Checked: {image_path2}")
        sys.exit(1)

    health = requests.get(f"{BASE_URL}/health", timeout=TIMEOUT).json()
    if not health.get("modelsLoaded"):
        print(f"Error: Gateway at {BASE_URL} has not finished loading its models.")
        sys.exit(1)

    print("Generating embeddings...")
    vector1 = get_embedding(image_path1)
    vector2 = get_embedding(image_path2)

    if vector1.size == 0 or vector2.size == 0:
        print("\nCould not generate embeddings. Exiting.")
        sys.exit(1)

    # --- Compare Vectors ---
    cosine_similarity = float(np.dot(vector1, vector2))

    print("\n--- Results ---")
    print(f"Vector 1 (first 8 dims): {vector1[:8]}")
    print(f"Vector 2 (first 8 dims): {vector2[:8]}")
    print(f"\nCosine Similarity: {cosine_similarity:.4f}")

    # SFace same-identity cosine threshold is 0.363
    if cosine_similarity > 0.5:
        print("Verdict: The faces are LIKELY the same person.")
    elif cosine_similarity > 0.363:
        print("Verdict: The faces are SOMEWHAT similar.")
    else:
        print("Verdict: The faces are LIKELY different people.")


if __name__ == "__main__":
    main()
