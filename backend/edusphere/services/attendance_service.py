"""Per-student attendance summaries."""
from typing import Dict, List

from edusphere.models.attendance import AttendanceRecord
from edusphere.models.attendance_session import AttendanceSession
from edusphere.models.course import Course, Enrollment

class AttendanceService:
    
    @staticmethod
    def summary_for_student(student_id: int) -> List[Dict]:
        """
        Attendance percentage per enrolled course.
        Total lectures = sessions flagged count_as_lecture. Attended counts
        unique sessions (or dates for manual records) and never exceeds the total.
        """
        enrollments = Enrollment.query.filter_by(student_id=student_id, status='active').all()
        records = AttendanceRecord.query.filter_by(student_id=student_id).all()
        
        summary = []
        for enrollment in enrollments:
            course = Course.get_by_id(enrollment.course_id)
            counted_ids = {
                s.id for s in AttendanceSession.query.filter_by(
                    classroom_id=enrollment.course_id,
                    count_as_lecture=True
                ).all()
            }
            total = len(counted_ids)
            
            attended_keys = set()
            for record in records:
                if record.course_id != enrollment.course_id:
                    continue
                if record.session_id:
                    if record.session_id in counted_ids:
                        attended_keys.add(record.session_id)
                else:
                    attended_keys.add(record.date.isoformat())
            
            attended = min(len(attended_keys), total)
            percentage = round(attended * 100.0 / total, 1) if total else 0.0
            
            summary.append({
                'course_id': enrollment.course_id,
                'course_code': course.code if course else None,
                'course_name': course.name if course else None,
                'attended': attended,
                'total': total,
                'percentage': percentage
            })
        
        return summary
