"""
================================================================================
EXERCISE POSE ANALYSIS PIPELINE - MAIN RUNNER (YOLO-Pose)
================================================================================
Main entry point for extracting pose sequences from exercise videos and
scoring their detection quality.

Usage:
    # Process single video
    python main.py --video path/to/squat.mp4 --exercise squat

    # Process all videos in directory
    python main.py --input-dir ./videos/ --exercise deadlift

    # Use fast preset
    python main.py --preset fast --video squat.mp4
================================================================================
"""

import argparse
import asyncio
import json
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from configs.config import PoseAnalysisConfig, get_accurate_config, get_fast_config
from exercise_pose.errors import PoseDetectionError
from exercise_pose.joints import ExerciseType
from exercise_pose.pose_estimator import PoseEstimator, create_estimator
from exercise_pose.pose_types import PoseEstimate, QualityAssessment
from exercise_pose.quality import QualityScorer
from exercise_pose.sequence_builder import SequenceBuilder
from exercise_pose.video_processor import VideoProcessor
from exercise_pose.video_validator import VideoQualityValidator


# ==============================================================================
# MAIN PIPELINE CLASS
# ==============================================================================

class ExerciseAnalysisPipeline:
    """
    Video → sampled frames → pose sequence → per-pose quality.

    Example:
        >>> pipeline = ExerciseAnalysisPipeline()
        >>> summary = pipeline.process_video("squat.mp4", ExerciseType.SQUAT)
        >>> pipeline.close()
    """

    def __init__(
        self,
        config: Optional[PoseAnalysisConfig] = None,
        estimator: Optional[PoseEstimator] = None,
        video_processor: Optional[VideoProcessor] = None,
        verbose: bool = False,
    ):
        self.config = config or PoseAnalysisConfig()
        self.verbose = verbose

        # Lazy-loaded components
        self._estimator = estimator
        self._video_processor = video_processor
        self._validator = None
        self.scorer = QualityScorer(self.config)

    @property
    def estimator(self) -> PoseEstimator:
        if self._estimator is None:
            self._estimator = create_estimator(self.config)
        return self._estimator

    @property
    def video_processor(self) -> VideoProcessor:
        if self._video_processor is None:
            self._video_processor = VideoProcessor(self.config, show_progress=self.verbose)
        return self._video_processor

    @property
    def validator(self) -> VideoQualityValidator:
        if self._validator is None:
            self._validator = VideoQualityValidator(self.config, self.video_processor)
        return self._validator

    def process_video(
        self,
        video_path: Union[str, Path],
        exercise_type: ExerciseType = ExerciseType.UNKNOWN,
        validate: bool = True,
        save_poses: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """
        Process a single video through the full pipeline.

        Args:
            video_path: Path to input video
            exercise_type: Exercise used for quality scoring
            validate: Check recording standards before sampling
            save_poses: Write the pose JSON (uses config if None)

        Returns:
            Dictionary with processing results and statistics

        Raises:
            PoseDetectionError: Fatal video- or sequence-level failure
        """
        video_path = Path(video_path)
        exercise_type = ExerciseType(exercise_type)
        if save_poses is None:
            save_poses = self.config.output.save_poses
        start_time = time.time()

        print("\n" + "=" * 60)
        print(f"PROCESSING: {video_path.name} ({exercise_type.value})")
        print("=" * 60)

        # -----------------------------------------------------------------------
        # Step 1: Recording standards
        # -----------------------------------------------------------------------
        video_report = None
        if validate:
            print("\n[Step 1/4] Validating video...")
            video_report = self.validator.validate(video_path)
            print(f"  ✓ Quality score {video_report.quality_score:.2f}")
            for issue in video_report.issues:
                print(f"  ⚠ {issue.description}")
        else:
            print("\n[Step 1/4] Skipping video validation")

        # -----------------------------------------------------------------------
        # Step 2: Frame sampling
        # -----------------------------------------------------------------------
        print("\n[Step 2/4] Sampling frames...")
        frame_interval = self.config.sampling.frame_interval
        frames = self.video_processor.extract_frames(
            video_path,
            frame_interval=frame_interval,
            max_frames=self.config.sampling.max_frames,
        )
        print(f"  ✓ Extracted {len(frames)} frames")

        # -----------------------------------------------------------------------
        # Step 3: Pose sequence
        # -----------------------------------------------------------------------
        print("\n[Step 3/4] Detecting poses...")
        builder = SequenceBuilder(
            self.estimator,
            frame_interval=frame_interval,
            show_progress=self.verbose,
        )
        poses = asyncio.run(builder.build([f.image for f in frames]))
        print(f"  ✓ Detected poses in {len(poses)} of {len(frames)} frames")

        # -----------------------------------------------------------------------
        # Step 4: Quality
        # -----------------------------------------------------------------------
        print("\n[Step 4/4] Scoring pose quality...")
        assessments = self.scorer.score_sequence(poses, exercise_type)
        sequence_quality = self.scorer.summarize(poses)
        acceptable = sum(1 for a in assessments if a.is_acceptable)
        print(f"  ✓ {acceptable}/{len(poses)} poses acceptable for {exercise_type.value}")
        print(f"  Sequence quality: {sequence_quality.quality_level.value} "
              f"({sequence_quality.overall_score:.2f})")

        poses_path = None
        if save_poses:
            self.config.output.setup_directories()
            poses_path = (
                self.config.output.output_dir
                / "keypoints"
                / f"{video_path.stem}_poses.json"
            )
            self._save_poses(poses, assessments, exercise_type, poses_path)
            print(f"  ✓ Saved: {poses_path}")

        elapsed = time.time() - start_time

        result_summary = {
            "video": str(video_path),
            "exercise_type": exercise_type.value,
            "frames_sampled": len(frames),
            "poses_detected": len(poses),
            "frames_failed": builder.frames_failed,
            "acceptable_poses": acceptable,
            "sequence_quality": sequence_quality.to_dict(),
            "video_quality": video_report.to_dict() if video_report else None,
            "processing_time_seconds": elapsed,
            "poses_path": str(poses_path) if poses_path else None,
        }

        print("\n" + "=" * 60)
        print("PROCESSING COMPLETE")
        print("=" * 60)
        print(f"  Poses: {len(poses)}")
        print(f"  Time: {elapsed:.1f}s")
        print("=" * 60 + "\n")

        return result_summary

    def _save_poses(
        self,
        poses: List[PoseEstimate],
        assessments: List[QualityAssessment],
        exercise_type: ExerciseType,
        output_path: Path,
    ) -> None:
        """Save pose sequence and per-pose quality to a JSON file."""
        output_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "exercise_type": exercise_type.value,
            "frame_interval": self.config.sampling.frame_interval,
            "model": self.config.model.model_name,
            "backend": self.estimator.backend.name(),
            "frames": [
                {**pose.to_dict(), "quality": assessment.to_dict()}
                for pose, assessment in zip(poses, assessments)
            ],
        }

        with open(output_path, "w") as f:
            json.dump(data, f, indent=2)

    def process_all_videos(
        self,
        input_dir: Union[str, Path],
        exercise_type: ExerciseType = ExerciseType.UNKNOWN,
        **kwargs,
    ) -> List[Dict[str, Any]]:
        """Process all videos in a directory, reporting per-video failures."""
        videos = self.video_processor.find_videos(input_dir)

        if not videos:
            print("No videos found")
            return []

        all_results = []
        for i, video_path in enumerate(videos, 1):
            print(f"\n[Video {i}/{len(videos)}]")
            try:
                result = self.process_video(video_path, exercise_type, **kwargs)
            except PoseDetectionError as e:
                print(f"  ⚠ {video_path.name}: {e.user_message}")
                result = {"video": str(video_path), "error": str(e)}
            all_results.append(result)

        return all_results

    def close(self) -> None:
        if self._estimator is not None:
            self._estimator.close()
            self._estimator = None


# ==============================================================================
# COMMAND LINE INTERFACE
# ==============================================================================

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Exercise Pose Extraction & Quality Scoring (YOLO-Pose)",
    )

    parser.add_argument("--video", "-v", type=str, help="Path to video file")
    parser.add_argument("--input-dir", "-i", type=str, help="Directory with videos")
    parser.add_argument("--output-dir", "-o", type=str, help="Output directory")
    parser.add_argument(
        "--exercise", "-e",
        type=str,
        default="unknown",
        help="Exercise type (squat, deadlift, bench_press, shoulder_press, pull_up)",
    )
    parser.add_argument(
        "--preset", "-p",
        choices=["default", "fast", "accurate"],
        default="default",
        help="Configuration preset"
    )
    parser.add_argument("--interval", type=float, help="Seconds between sampled frames")
    parser.add_argument("--device", type=str, help="Inference device (cpu, mps, cuda)")
    parser.add_argument("--no-validate", action="store_true", help="Skip video standards check")
    parser.add_argument("--no-save", action="store_true", help="Do not write pose JSON")
    parser.add_argument("--verbose", action="store_true", help="Verbose output")

    args = parser.parse_args(argv)
    if not args.video and not args.input_dir:
        parser.error("one of --video or --input-dir is required")
    return args


def get_config_for_preset(preset: str) -> PoseAnalysisConfig:
    presets = {
        "default": PoseAnalysisConfig,
        "fast": get_fast_config,
        "accurate": get_accurate_config,
    }
    return presets[preset]()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    print("\n" + "=" * 60)
    print("EXERCISE POSE ANALYSIS PIPELINE (YOLO-Pose)")
    print("=" * 60)

    config = get_config_for_preset(args.preset)

    if args.output_dir:
        config.output.output_dir = Path(args.output_dir)
    if args.interval is not None:
        config.sampling.frame_interval = args.interval
    if args.device:
        config.device.preferred_device = args.device
    if args.no_save:
        config.output.save_poses = False

    try:
        config.validate()
    except ValueError as e:
        print(f"✗ Invalid configuration: {e}")
        return 2

    if args.verbose:
        config.print_summary()

    exercise_type = ExerciseType.from_string(args.exercise)
    pipeline = ExerciseAnalysisPipeline(config, verbose=args.verbose)

    try:
        if args.video:
            pipeline.process_video(
                args.video,
                exercise_type,
                validate=not args.no_validate,
            )
        else:
            pipeline.process_all_videos(
                args.input_dir,
                exercise_type,
                validate=not args.no_validate,
            )
    except PoseDetectionError as e:
        print(f"\n✗ {e.user_message}")
        return 1
    except FileNotFoundError as e:
        print(f"\n✗ {e}")
        return 1
    finally:
        pipeline.close()

    print("\n✓ Pipeline complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
