#!/usr/bin/env python3
"""
Setup script for downloading the voice camera's model assets:
the Vosk speech recognition model and dlib's face landmark predictor.
"""

import os
import sys
import bz2
import shutil
import urllib.request
import zipfile
import argparse

VOSK_URL = "https://alphacephei.com/vosk/models/{name}.zip"
LANDMARK_URL = "http://dlib.net/files/shape_predictor_68_face_landmarks.dat.bz2"
LANDMARK_FILE = "shape_predictor_68_face_landmarks.dat"


def download_vosk_model(model_name: str, model_dir: str) -> bool:
    """Download and extract a Vosk model from the official repository."""
    model_path = os.path.join(model_dir, model_name)
    if os.path.exists(model_path):
        print(f"✅ Vosk model already present at {model_path}")
        return True

    model_url = VOSK_URL.format(name=model_name)
    zip_path = os.path.join(model_dir, f"{model_name}.zip")

    print(f"📥 Downloading {model_name}...")
    print(f"   URL: {model_url}")

    try:
        urllib.request.urlretrieve(model_url, zip_path)
        print(f"✅ Downloaded {zip_path}")

        print(f"📦 Extracting to {model_dir}...")
        with zipfile.ZipFile(zip_path, 'r') as zip_ref:
            zip_ref.extractall(model_dir)
    except (OSError, zipfile.BadZipFile) as e:
        print(f"❌ Error downloading Vosk model: {e}")
        return False
    finally:
        if os.path.exists(zip_path):
            os.remove(zip_path)

    if os.path.exists(model_path):
        print(f"✅ Model successfully extracted to {model_path}")
        return True
    print("❌ Model extraction failed")
    return False


def download_landmark_model(model_dir: str) -> bool:
    """Download and decompress dlib's 68-point landmark predictor."""
    target = os.path.join(model_dir, LANDMARK_FILE)
    if os.path.exists(target):
        print(f"✅ Landmark model already present at {target}")
        return True

    archive = target + ".bz2"
    print("📥 Downloading dlib landmark predictor...")
    print(f"   URL: {LANDMARK_URL}")

    try:
        urllib.request.urlretrieve(LANDMARK_URL, archive)
        with bz2.open(archive, 'rb') as src, open(target, 'wb') as dst:
            shutil.copyfileobj(src, dst)
    except OSError as e:
        print(f"❌ Error downloading landmark model: {e}")
        if os.path.exists(target):
            os.remove(target)
        return False
    finally:
        if os.path.exists(archive):
            os.remove(archive)

    print(f"✅ Landmark model saved to {target}")
    return True


def main():
    """Main function for model setup."""
    parser = argparse.ArgumentParser(description="Download voice camera model assets")
    parser.add_argument("--model", default="vosk-model-small-en-us-0.15",
                        help="Vosk model name to download (default: vosk-model-small-en-us-0.15)")
    parser.add_argument("--dir", default="models",
                        help="Directory to store models in (default: models)")
    parser.add_argument("--skip-landmarks", action="store_true",
                        help="Do not download the dlib landmark predictor")

    args = parser.parse_args()

    print("🎤 Voice Operated Camera - Model Setup")
    print("=" * 50)

    os.makedirs(args.dir, exist_ok=True)

    success = download_vosk_model(args.model, args.dir)
    if not args.skip_landmarks:
        success = download_landmark_model(args.dir) and success

    if success:
        print("\n🎉 Model setup complete!")
        print(f"   Model directory: {args.dir}")
        print("\nYou can now run the voice camera:")
        print("   voicecam")
    else:
        print("\n❌ Model setup failed!")
        sys.exit(1)


if __name__ == "__main__":
    main()
